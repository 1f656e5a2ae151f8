import pytest

from game_shelf.settings import get_settings

_ENV_VARS = (
    "HOST",
    "PORT",
    "GAMES_DATA_FILE",
    "GAMES_IMAGES_DIR",
    "CORS_ALLOW_ORIGINS",
    "DELETE_REPLACED_IMAGES",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    def test_defaults(self):
        s = get_settings()
        assert s.port == 4000
        assert s.host == "0.0.0.0"
        assert s.data_file == "./data/games.json"
        assert s.images_dir == "./public/images"
        assert s.cors_allow_origins == ["*"]
        assert s.delete_replaced_images is True
        assert s.log_level == "INFO"

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("GAMES_DATA_FILE", "/tmp/g.json")
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.test, http://b.test,")
        monkeypatch.setenv("DELETE_REPLACED_IMAGES", "no")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        s = get_settings()

        assert s.port == 8080
        assert s.data_file == "/tmp/g.json"
        assert s.cors_allow_origins == ["http://a.test", "http://b.test"]
        assert s.delete_replaced_images is False
        assert s.log_level == "DEBUG"

    @pytest.mark.parametrize("value", ["abc", "0", "70000"])
    def test_invalid_port_falls_back(self, monkeypatch, value):
        monkeypatch.setenv("PORT", value)
        assert get_settings().port == 4000

    def test_unknown_log_level_falls_back(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")
        assert get_settings().log_level == "INFO"
