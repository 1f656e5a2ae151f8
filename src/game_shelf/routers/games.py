from __future__ import annotations

import logging
from typing import Any, List, Optional, Type, TypeVar

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from starlette.concurrency import run_in_threadpool

from ..errors import GameShelfError, MissingImageError
from ..images import ImageStore
from ..models import GameStatus
from ..repositories import GameRepository
from ..schemas import GameCreate, GameOut, GamePatch, MessageOut

logger = logging.getLogger("game_shelf.api")

router = APIRouter(
    prefix="/games",
    tags=["games"],
)

# Text fields accepted by PUT; anything else in the form is ignored.
_PATCH_FIELDS = ("title", "status", "hours", "extra")

M = TypeVar("M", bound=BaseModel)


# PUBLIC_INTERFACE
def get_repository(request: Request) -> GameRepository:
    """Return the repository owned by the running application."""
    return request.app.state.repository


# PUBLIC_INTERFACE
def get_image_store(request: Request) -> ImageStore:
    """Return the image store owned by the running application."""
    return request.app.state.images


def _has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


def _validated(schema: Type[M], **fields: Any) -> M:
    """Build a schema from form fields, reporting failures as request validation errors."""
    try:
        return schema(**fields)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False, include_context=False)) from exc


def _discard_upload(images: ImageStore, name: str) -> None:
    try:
        images.delete(name)
    except OSError as exc:
        logger.warning("Could not delete unused upload %s: %s", name, exc)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[GameOut],
    response_model_exclude_none=True,
    summary="List Games",
    description="Return every game in the order they were added.",
    responses={200: {"description": "List retrieved successfully"}},
)
def list_games(repo: GameRepository = Depends(get_repository)) -> List[GameOut]:
    """
    List all games.
    """
    return [GameOut(**item) for item in repo.list()]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=GameOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create Game",
    description="Create a game from a multipart form with a required `image` file.",
    responses={
        201: {"description": "Game created successfully"},
        400: {"model": MessageOut, "description": "No image attached or invalid fields"},
    },
)
def create_game(
    image: Optional[UploadFile] = File(None, description="Cover image"),
    title: Optional[str] = Form(None, description="Game title"),
    status_: Optional[str] = Form(None, alias="status", description="Completed, InProgress or Abandoned"),
    hours: Optional[str] = Form(None, description="Hours played"),
    extra: Optional[str] = Form(None, description="Optional notes"),
    repo: GameRepository = Depends(get_repository),
    images: ImageStore = Depends(get_image_store),
) -> GameOut:
    """
    Create a new game. The image is stored only after the text fields validate.
    """
    if not _has_file(image):
        raise MissingImageError()
    data = _validated(GameCreate, title=title, status=status_, hours=hours, extra=extra)

    name = images.save(image.filename, image.file)
    try:
        created = repo.add(data, name)
    except GameShelfError:
        _discard_upload(images, name)
        raise
    return GameOut(**created)


# PUBLIC_INTERFACE
@router.put(
    "/{game_id}",
    response_model=GameOut,
    response_model_exclude_none=True,
    summary="Update Game",
    description=(
        "Partially update a game from a multipart form. Omitted fields keep their value; "
        "an empty `extra` clears the notes; a new `image` replaces the cover."
    ),
    responses={
        200: {"description": "Game updated"},
        400: {"model": MessageOut, "description": "Invalid fields"},
        404: {"model": MessageOut, "description": "Game not found"},
    },
    openapi_extra={
        "requestBody": {
            "content": {
                "multipart/form-data": {
                    "schema": {
                        "type": "object",
                        "properties": {
                            "image": {"type": "string", "format": "binary", "description": "Replacement cover image"},
                            "title": {"type": "string", "description": "Game title"},
                            "status": {"type": "string", "enum": [s.value for s in GameStatus]},
                            "hours": {"type": "number", "minimum": 0, "description": "Hours played"},
                            "extra": {"type": "string", "description": "Notes; send empty to clear"},
                        },
                    }
                }
            }
        }
    },
)
async def update_game(
    game_id: int,
    request: Request,
    repo: GameRepository = Depends(get_repository),
    images: ImageStore = Depends(get_image_store),
) -> GameOut:
    """
    Partial update of a game.

    The form is read directly because FastAPI reports an empty field as
    missing, and an empty `extra` must clear the notes. Empty `title`,
    `status` and `hours` count as not supplied.
    """
    async with request.form() as form:
        fields = {}
        for name in _PATCH_FIELDS:
            value = form.get(name)
            if isinstance(value, str) and (name == "extra" or value.strip()):
                fields[name] = value
        patch = _validated(GamePatch, **fields)
        image = form.get("image")

        await run_in_threadpool(repo.get, game_id)
        new_image = None
        if not isinstance(image, str) and _has_file(image):
            new_image = await run_in_threadpool(images.save, image.filename, image.file)
    try:
        updated = await run_in_threadpool(repo.update, game_id, patch, new_image)
    except GameShelfError:
        if new_image:
            _discard_upload(images, new_image)
        raise
    return GameOut(**updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{game_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Game",
    description="Delete a game and its image.",
    responses={
        204: {"description": "Game deleted"},
        404: {"model": MessageOut, "description": "Game not found"},
    },
)
def delete_game(game_id: int, repo: GameRepository = Depends(get_repository)) -> None:
    """
    Delete a game. Returns 204 on success, 404 if not found.
    """
    repo.remove(game_id)
    return None
