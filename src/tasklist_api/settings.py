from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)

_DEFAULT_STATIC_DIR = str(Path(__file__).resolve().parent / "static")
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - HOST: interface uvicorn binds to. Default '0.0.0.0'
    - PORT: port uvicorn listens on. Default 3000
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - SEED_TODOS: 'false' to start with an empty collection (default: true)
    - LOG_LEVEL: standard logging level name (default: INFO)
    - STATIC_DIR: directory holding the browser client (default: bundled 'static/')
    """

    host: str
    port: int
    cors_allow_origins: List[str]
    seed_todos: bool
    log_level: str
    static_dir: str


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


def _parse_port(value: str, default: int) -> int:
    try:
        port = int(value.strip())
    except ValueError:
        logger.warning("Invalid PORT value '%s', using default=%s", value, default)
        return default
    if not 0 < port < 65536:
        logger.warning("PORT %s out of range, using default=%s", port, default)
        return default
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


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        log_level = "INFO"

    return Settings(
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_port(_get_env("PORT", "3000"), 3000),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        seed_todos=_parse_bool(_get_env("SEED_TODOS", "true"), True),
        log_level=log_level,
        static_dir=_get_env("STATIC_DIR", _DEFAULT_STATIC_DIR).strip(),
    )
