from __future__ import annotations

from enum import Enum
from typing import Optional, TypedDict, Union


# PUBLIC_INTERFACE
class GameStatus(str, Enum):
    """
    Completion status of a game.

    The Russian labels used by earlier clients are accepted on input and
    normalized to the canonical values below.
    """

    COMPLETED = "Completed"
    IN_PROGRESS = "InProgress"
    ABANDONED = "Abandoned"

    @classmethod
    def _missing_(cls, value: object) -> Optional["GameStatus"]:
        if isinstance(value, str):
            return _STATUS_ALIASES.get(value.strip().casefold())
        return None


_STATUS_ALIASES = {
    "completed": GameStatus.COMPLETED,
    "inprogress": GameStatus.IN_PROGRESS,
    "in progress": GameStatus.IN_PROGRESS,
    "in_progress": GameStatus.IN_PROGRESS,
    "abandoned": GameStatus.ABANDONED,
    "пройдено": GameStatus.COMPLETED,
    "в процессе": GameStatus.IN_PROGRESS,
    "брошено": GameStatus.ABANDONED,
}


# PUBLIC_INTERFACE
class GameEntity(TypedDict):
    """
    A tracked game as kept in memory and written to the JSON snapshot.

    Fields:
    - id: Unique integer identifier, assigned on creation
    - image: Name of the stored cover image
    - title: Non-empty title
    - status: GameStatus
    - hours: Non-negative hours played
    - extra: Optional free-form notes; None means "not set"
    """

    id: int
    image: str
    title: str
    status: GameStatus
    hours: Union[int, float]
    extra: Optional[str]


# PUBLIC_INTERFACE
def entity_to_json(entity: GameEntity) -> dict:
    """Return the wire/snapshot form of an entity: stable key order, `extra` only when set."""
    out = {
        "id": entity["id"],
        "image": entity["image"],
        "title": entity["title"],
        "status": GameStatus(entity["status"]).value,
        "hours": entity["hours"],
    }
    if entity.get("extra") is not None:
        out["extra"] = entity["extra"]
    return out
