from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
import time
from abc import ABC, abstractmethod
from pathlib import Path
from threading import RLock
from typing import List, Optional, Set, Tuple, Union

from pydantic import ValidationError

from .errors import GameNotFoundError, MissingImageError, StorageError
from .images import ImageStore
from .models import GameEntity, entity_to_json
from .schemas import GameCreate, GameOut, GamePatch


# PUBLIC_INTERFACE
class GameRepository(ABC):
    """Abstract contract for game storage backends."""

    @abstractmethod
    def initialize(self) -> None:
        """Load the collection from durable storage, creating an empty one if needed."""

    @abstractmethod
    def list(self) -> List[GameEntity]:
        """Return every game in insertion order."""

    @abstractmethod
    def get(self, game_id: int) -> GameEntity:
        """Return a game by id. Raise GameNotFoundError if absent."""

    @abstractmethod
    def add(self, data: GameCreate, image: Optional[str]) -> GameEntity:
        """Create a game referencing an already stored image and return it."""

    @abstractmethod
    def update(self, game_id: int, patch: GamePatch, image: Optional[str] = None) -> GameEntity:
        """Apply the supplied fields (and optionally a new image) and return the updated game."""

    @abstractmethod
    def remove(self, game_id: int) -> None:
        """Delete a game and its image."""


class JsonFileRepository(GameRepository):
    """
    Keeps the collection in memory and rewrites the whole JSON snapshot after
    every mutation.

    Mutations build a new list, persist it, and only then replace the
    in-memory collection, so a failed write leaves memory matching the file.
    All access goes through one re-entrant lock.
    """

    def __init__(
        self,
        data_file: Union[str, Path],
        images: ImageStore,
        delete_replaced_images: bool = True,
    ) -> None:
        self._path = Path(data_file)
        self._images = images
        self._delete_replaced_images = delete_replaced_images
        self._lock = RLock()
        self._items: List[GameEntity] = []
        self._last_id = 0
        self._log = logging.getLogger("game_shelf.repository")

    @property
    def path(self) -> Path:
        return self._path

    def _allocate_id(self) -> int:
        # Millisecond timestamps, bumped past the last id so rapid calls never collide.
        with self._lock:
            self._last_id = max(int(time.time() * 1000), self._last_id + 1)
            return self._last_id

    def _write(self, items: List[GameEntity]) -> None:
        """Atomically write `items` as the new snapshot."""
        payload = json.dumps([entity_to_json(e) for e in items], indent=2, ensure_ascii=False)
        tmp_path = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_path, self._path)
        except OSError as exc:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            self._log.exception("Could not write %s", self._path)
            raise StorageError(f"Could not write {self._path}: {exc}") from exc

    def _read(self) -> Tuple[List[GameEntity], bool]:
        """
        Load the snapshot record by record.

        Returns the usable games and whether the file should be rewritten
        from them. Unusable files and skipped records are copied aside first;
        if that copy cannot be made the file is left untouched.
        """
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return [], True
        except OSError as exc:
            self._log.warning("Could not read %s: %s", self._path, exc)
            return [], self._set_aside(move=True)
        try:
            records = json.loads(raw.decode("utf-8"))
        except ValueError as exc:
            self._log.warning("Ignoring unparsable snapshot %s: %s", self._path, exc)
            return [], self._set_aside(move=True)
        if not isinstance(records, list):
            self._log.warning("Ignoring snapshot %s: expected a list, got %s", self._path, type(records).__name__)
            return [], self._set_aside(move=True)

        items: List[GameEntity] = []
        seen: Set[int] = set()
        for position, record in enumerate(records):
            try:
                game = GameOut.model_validate(record)
            except ValidationError as exc:
                self._log.warning("Skipping invalid record #%d in %s: %s", position, self._path, exc.error_count())
                continue
            if game.id in seen:
                self._log.warning("Skipping record #%d in %s: duplicate id %d", position, self._path, game.id)
                continue
            seen.add(game.id)
            items.append(self._to_entity(game))

        if len(items) == len(records):
            return items, False
        return items, self._set_aside(move=False)

    def _set_aside(self, move: bool) -> bool:
        """Move (or copy) the current snapshot to `<name>.corrupt-<ms>`. Return True on success."""
        backup = self._path.with_name(f"{self._path.name}.corrupt-{int(time.time() * 1000)}")
        try:
            if move:
                os.replace(self._path, backup)
            else:
                shutil.copy2(self._path, backup)
        except OSError as exc:
            self._log.error("Could not set aside %s, leaving it untouched: %s", self._path, exc)
            return False
        self._log.warning("Saved previous snapshot to %s", backup)
        return True

    @staticmethod
    def _to_entity(game: GameOut) -> GameEntity:
        return {
            "id": game.id,
            "image": game.image,
            "title": game.title,
            "status": game.status,
            "hours": game.hours,
            "extra": game.extra,
        }

    def _index_of(self, game_id: int) -> int:
        for i, item in enumerate(self._items):
            if item["id"] == game_id:
                return i
        raise GameNotFoundError(game_id)

    def _discard_image(self, name: str) -> None:
        try:
            self._images.delete(name)
        except OSError as exc:
            self._log.warning("Could not delete image %s: %s", name, exc)

    def initialize(self) -> None:
        with self._lock:
            items, rewrite = self._read()
            if rewrite:
                created = not self._path.exists()
                self._write(items)
                if created:
                    self._log.info("Created new data file at %s", self._path)
            self._items = items
            self._log.info("Loaded %d games from %s", len(items), self._path)
            self._last_id = max((e["id"] for e in self._items), default=0)

    def list(self) -> List[GameEntity]:
        with self._lock:
            return [item.copy() for item in self._items]

    def get(self, game_id: int) -> GameEntity:
        with self._lock:
            return self._items[self._index_of(game_id)].copy()

    def add(self, data: GameCreate, image: Optional[str]) -> GameEntity:
        if not image:
            raise MissingImageError()
        with self._lock:
            entity: GameEntity = {
                "id": self._allocate_id(),
                "image": image,
                "title": data.title,
                "status": data.status,
                "hours": data.hours,
                "extra": data.extra or None,
            }
            items = self._items + [entity]
            self._write(items)
            self._items = items
            self._log.info("Added game %d (%s)", entity["id"], entity["title"])
            return entity.copy()

    def update(self, game_id: int, patch: GamePatch, image: Optional[str] = None) -> GameEntity:
        with self._lock:
            idx = self._index_of(game_id)
            existing = self._items[idx]

            # Update only provided fields
            updated = existing.copy()
            for name, value in patch.changes().items():
                if name == "extra" or value is not None:
                    updated[name] = value  # type: ignore[literal-required]
            replaced = None
            if image:
                replaced = existing["image"]
                updated["image"] = image

            items = list(self._items)
            items[idx] = updated
            self._write(items)
            self._items = items
            self._log.info("Updated game %d", game_id)

            if replaced and replaced != image:
                if self._delete_replaced_images:
                    self._discard_image(replaced)
                else:
                    self._log.debug("Keeping replaced image %s", replaced)
            return updated.copy()

    def remove(self, game_id: int) -> None:
        with self._lock:
            idx = self._index_of(game_id)
            removed = self._items[idx]
            items = self._items[:idx] + self._items[idx + 1:]
            self._write(items)
            self._items = items
            self._discard_image(removed["image"])
            self._log.info("Removed game %d", game_id)
