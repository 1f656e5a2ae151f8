"""
File-backed storage for uploaded cover images.

Images are stored in a single directory under generated names of the form
``<epoch-ms>-<random>.<ext>``, keeping the extension of the uploaded file so
the static file server can guess the content type.
"""
from __future__ import annotations

import logging
import os
import secrets
import shutil
import time
from pathlib import Path
from typing import BinaryIO, Union

logger = logging.getLogger("game_shelf.images")

_RANDOM_BOUND = 10**9


class ImageStore:
    """Stores uploaded images by generated name and resolves them back."""

    def __init__(self, root_dir: Union[str, Path]) -> None:
        self.root = Path(root_dir).resolve()

    def _generate_name(self, filename_hint: str) -> str:
        ext = os.path.splitext(filename_hint or "")[1]
        return f"{int(time.time() * 1000)}-{secrets.randbelow(_RANDOM_BOUND)}{ext}"

    # PUBLIC_INTERFACE
    def save(self, filename_hint: str, stream: BinaryIO) -> str:
        """
        Copy `stream` into the store and return the generated name.

        Only the extension of `filename_hint` is used. An existing file is
        never overwritten.
        """
        self.root.mkdir(parents=True, exist_ok=True)
        while True:
            name = self._generate_name(filename_hint)
            try:
                fh = open(self.root / name, "xb")
            except FileExistsError:
                continue
            break
        try:
            with fh:
                shutil.copyfileobj(stream, fh)
        except OSError:
            (self.root / name).unlink(missing_ok=True)
            raise
        logger.debug("Stored image %s (from %r)", name, filename_hint)
        return name

    # PUBLIC_INTERFACE
    def path(self, name: str) -> Path:
        """Return the path of a stored image name. Names that leave the store are rejected."""
        if not name or name in {".", ".."} or "/" in name or "\\" in name:
            raise FileNotFoundError(name)
        return self.root / name

    def exists(self, name: str) -> bool:
        try:
            return self.path(name).is_file()
        except FileNotFoundError:
            return False

    # PUBLIC_INTERFACE
    def delete(self, name: str) -> None:
        """Delete a stored image. Raises FileNotFoundError if it is not there."""
        self.path(name).unlink()
        logger.debug("Deleted image %s", name)
