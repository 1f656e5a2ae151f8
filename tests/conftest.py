import pytest
from fastapi.testclient import TestClient

from game_shelf.images import ImageStore
from game_shelf.main import create_app
from game_shelf.repositories import JsonFileRepository

from helpers import make_settings


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def images(tmp_path):
    return ImageStore(tmp_path / "images")


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "data" / "games.json"


@pytest.fixture
def repo(data_file, images):
    repository = JsonFileRepository(data_file, images)
    repository.initialize()
    return repository


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c
