"""Environment-driven runtime settings."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


_DATA_DIR_ENV = "CLIMATECAST_DATA_DIR"
_OFFLINE_ENV = "CLIMATECAST_OFFLINE"
_TIMEOUT_ENV = "CLIMATECAST_HTTP_TIMEOUT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    offline: bool
    http_timeout: int
    log_level: str


def _read_path_env(name: str, default: str) -> Path:
    value = os.getenv(name)
    if value is None or not value.strip():
        return Path(default)
    return Path(value.strip()).expanduser()


def _read_flag_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if not candidate:
        return default
    return candidate in _TRUTHY


def _read_timeout(default: int) -> int:
    value = os.getenv(_TIMEOUT_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        data_dir=_read_path_env(_DATA_DIR_ENV, "./data"),
        offline=_read_flag_env(_OFFLINE_ENV, False),
        http_timeout=_read_timeout(60),
        log_level=_read_log_level("INFO"),
    )
