from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - HOST: interface to bind when run via `game-shelf` (default '0.0.0.0')
    - PORT: listen port (default 4000)
    - GAMES_DATA_FILE: path to the JSON snapshot of the collection. Default './data/games.json'
    - GAMES_IMAGES_DIR: directory holding uploaded images. Default './public/images'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - DELETE_REPLACED_IMAGES: 'true' (default) to delete the old image when PUT uploads a new one
    - LOG_LEVEL: logging level name (default 'INFO')
    """

    host: str
    port: int
    data_file: str
    images_dir: str
    cors_allow_origins: List[str]
    delete_replaced_images: bool
    log_level: str


DEFAULT_PORT = 4000
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_port(value: str) -> int:
    try:
        port = int(value.strip())
    except ValueError:
        return DEFAULT_PORT
    if not (0 < port < 65536):
        return DEFAULT_PORT
    return port


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _parse_log_level(value: str) -> str:
    name = value.strip().upper()
    if name in _LOG_LEVELS:
        return name
    return "INFO"


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    return Settings(
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_port(_get_env("PORT", str(DEFAULT_PORT))),
        data_file=_get_env("GAMES_DATA_FILE", "./data/games.json").strip(),
        images_dir=_get_env("GAMES_IMAGES_DIR", "./public/images").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        delete_replaced_images=_parse_bool(_get_env("DELETE_REPLACED_IMAGES", "true"), True),
        log_level=_parse_log_level(_get_env("LOG_LEVEL", "INFO")),
    )
