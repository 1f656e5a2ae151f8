from __future__ import annotations

import math
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import GameStatus

Hours = Union[int, float]


def _parse_hours(value: Any) -> Any:
    """
    Normalize hours played from form text or a number.
    - Integral text stays an int ("3" -> 3), other numeric text becomes a float ("2.5" -> 2.5).
    - Negative, NaN and infinite values are rejected.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("hours must be a number")
    if isinstance(value, str):
        s = value.strip()
        try:
            value = int(s)
        except ValueError:
            try:
                value = float(s)
            except ValueError as e:
                raise ValueError("hours must be a number") from e
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError("hours must be a finite number")
    if isinstance(value, (int, float)) and value < 0:
        raise ValueError("hours must be non-negative")
    return value


def _parse_status(value: Any) -> Any:
    if value is None or isinstance(value, GameStatus):
        return value
    try:
        return GameStatus(value)
    except ValueError as e:
        allowed = ", ".join(s.value for s in GameStatus)
        raise ValueError(f"status must be one of: {allowed}") from e


def _strip_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    s = value.strip()
    if not (1 <= len(s) <= 200):
        raise ValueError("title length must be between 1 and 200 characters")
    return s


# PUBLIC_INTERFACE
class GameCreate(BaseModel):
    """
    Text fields of a new game. The image is uploaded separately and passed to
    the repository as a stored name.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Celeste",
                "status": "InProgress",
                "hours": 3,
                "extra": "Stuck on chapter 7",
            }
        }
    )

    title: str = Field(..., description="Game title", min_length=1, max_length=200)
    status: GameStatus = Field(..., description="Completion status")
    hours: Hours = Field(..., description="Hours played (non-negative)")
    extra: Optional[str] = Field(default=None, description="Optional notes")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """
        Strip whitespace and enforce 1..200 length.
        """
        if v is None:
            raise ValueError("title is required")
        return _strip_title(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any) -> Any:
        return _parse_status(v)

    @field_validator("hours", mode="before")
    @classmethod
    def validate_hours(cls, v: Any) -> Any:
        return _parse_hours(v)


# PUBLIC_INTERFACE
class GamePatch(BaseModel):
    """
    Partial update of a game.

    Only fields present in `model_fields_set` are applied. For `extra`,
    an explicit None or empty string clears the notes, while leaving the
    field out keeps the current value.
    """

    title: Optional[str] = Field(default=None, description="Game title", min_length=1, max_length=200)
    status: Optional[GameStatus] = Field(default=None, description="Completion status")
    hours: Optional[Hours] = Field(default=None, description="Hours played (non-negative)")
    extra: Optional[str] = Field(default=None, description="Notes; empty clears them")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        return _strip_title(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any) -> Any:
        return _parse_status(v)

    @field_validator("hours", mode="before")
    @classmethod
    def validate_hours(cls, v: Any) -> Any:
        return _parse_hours(v)

    @field_validator("extra")
    @classmethod
    def empty_extra_clears(cls, v: Optional[str]) -> Optional[str]:
        return v if v else None

    def changes(self) -> dict:
        """Return only the supplied fields, mapped to their new values."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# PUBLIC_INTERFACE
class GameOut(BaseModel):
    """
    Schema returned by the API for a game. `extra` is omitted when unset.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1760781600000,
                "image": "1760781600000-482913374.png",
                "title": "Celeste",
                "status": "InProgress",
                "hours": 3,
                "extra": "Stuck on chapter 7",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the game")
    image: str = Field(..., description="Stored image name, served under /images/{image}")
    title: str = Field(..., description="Game title")
    status: GameStatus = Field(..., description="Completion status")
    hours: Hours = Field(..., description="Hours played")
    extra: Optional[str] = Field(default=None, description="Optional notes")


# PUBLIC_INTERFACE
class MessageOut(BaseModel):
    """Error body used for 400/404 responses."""

    message: str
