"""Domain errors raised by the game store and mapped to HTTP responses in main."""
from __future__ import annotations

from typing import Optional


class GameShelfError(Exception):
    """Base class for all game shelf errors."""

    status_code = 500
    message = "Internal error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidGameError(GameShelfError):
    """A request is missing a required field or carries an invalid one."""

    status_code = 400
    message = "Invalid game data"


class MissingImageError(InvalidGameError):
    """A game was submitted for creation without an image."""

    message = "No image attached"


class GameNotFoundError(GameShelfError):
    status_code = 404
    message = "Game not found"

    def __init__(self, game_id: int) -> None:
        super().__init__()
        self.game_id = game_id


class StorageError(GameShelfError):
    """The durable snapshot could not be written."""

    message = "Storage failure"
