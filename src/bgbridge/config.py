# src/bgbridge/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Defaults match the host integration (identifiers, 15/30 minute delays).
- Nothing here is persisted; scheduling preferences live with the host.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "BGBRIDGE"

DEFAULT_REFRESH_IDENTIFIER = "com.example.appAccelerometer.refresh"
DEFAULT_PROCESSING_IDENTIFIER = "com.example.appAccelerometer.processing"
DEFAULT_CHANNEL_NAME = "com.example.appAccelerometer/channel"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path
    debug: bool

    # ---- Identifiers ----
    channel_name: str
    refresh_identifier: str
    processing_identifier: str

    # ---- Task defaults ----
    refresh_delay_seconds: int
    processing_delay_seconds: int
    processing_requires_network: bool
    processing_requires_power: bool

    # ---- Legacy path ----
    legacy_mode: bool
    legacy_fetch_timeout_seconds: float

    # ---- Simulator ----
    window_budget_seconds: float
    poll_interval_seconds: float
    time_scale: float
    auto_start: bool

    @staticmethod
    def from_env(*, load_env_file: bool = True) -> "Settings":
        if load_env_file:
            load_dotenv(override=False)

        return Settings(
            app_name=_env(_k("APP_NAME"), "bgbridge"),
            log_level=_env(_k("LOG_LEVEL"), "INFO"),
            data_dir=_env_path(_k("DATA_DIR"), Path(".local/bgbridge")),
            debug=_env_bool(_k("DEBUG"), False),
            channel_name=_env(_k("CHANNEL_NAME"), DEFAULT_CHANNEL_NAME),
            refresh_identifier=_env(_k("REFRESH_IDENTIFIER"), DEFAULT_REFRESH_IDENTIFIER),
            processing_identifier=_env(_k("PROCESSING_IDENTIFIER"), DEFAULT_PROCESSING_IDENTIFIER),
            refresh_delay_seconds=_env_int(_k("REFRESH_DELAY_SECONDS"), 15 * 60),
            processing_delay_seconds=_env_int(_k("PROCESSING_DELAY_SECONDS"), 30 * 60),
            processing_requires_network=_env_bool(_k("PROCESSING_REQUIRES_NETWORK"), False),
            processing_requires_power=_env_bool(_k("PROCESSING_REQUIRES_POWER"), False),
            legacy_mode=_env_bool(_k("LEGACY_MODE"), False),
            legacy_fetch_timeout_seconds=_env_float(_k("LEGACY_FETCH_TIMEOUT_SECONDS"), 30.0),
            window_budget_seconds=_env_float(_k("WINDOW_BUDGET_SECONDS"), 30.0),
            poll_interval_seconds=_env_float(_k("POLL_INTERVAL_SECONDS"), 1.0),
            time_scale=_env_float(_k("TIME_SCALE"), 1.0),
            auto_start=_env_bool(_k("AUTO_START"), True),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
