from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from .game_state import LOADING_DURATION_S

MAPS_API_KEY_ENV = "WTM_GOOGLE_MAPS_API_KEY"
MAPS_API_KEY_FALLBACK_ENV = "GOOGLE_MAPS_API_KEY"
LOADING_DURATION_ENV = "WTM_LOADING_DURATION_S"
LOG_LEVEL_ENV = "WTM_LOG_LEVEL"
LOG_FILE_ENV = "WTM_LOG_FILE"

PLACEHOLDER_API_KEY = "your_api_key_here"


def _as_positive_float(value: str | None, fallback: float) -> float:
    if value is None:
        return fallback
    try:
        parsed = float(value)
    except ValueError:
        return fallback
    if parsed <= 0.0:
        return fallback
    return parsed


def _as_log_level(value: str | None) -> int:
    if not value:
        return logging.INFO
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else logging.INFO


@dataclass(frozen=True, slots=True)
class AppConfig:
    maps_api_key: str | None = None
    loading_duration_s: float = LOADING_DURATION_S
    log_level: int = logging.INFO
    log_file: str | None = None

    @property
    def maps_enabled(self) -> bool:
        """A missing or placeholder key disables the map; it is not an error."""

        key = (self.maps_api_key or "").strip()
        return key != "" and key != PLACEHOLDER_API_KEY

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "AppConfig":
        env = os.environ if environ is None else environ
        key = env.get(MAPS_API_KEY_ENV) or env.get(MAPS_API_KEY_FALLBACK_ENV)
        return cls(
            maps_api_key=key.strip() if key else None,
            loading_duration_s=_as_positive_float(env.get(LOADING_DURATION_ENV), LOADING_DURATION_S),
            log_level=_as_log_level(env.get(LOG_LEVEL_ENV)),
            log_file=(env.get(LOG_FILE_ENV) or "").strip() or None,
        )
