# src/pulsegrid/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time; every value has a default.
- Consumers accept an injected settings object, get_settings() is only the fallback.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ENV_PREFIX = "PULSEGRID"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


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


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        return None


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

    # ---- Runtime switches ----
    console_enabled: bool
    scheduler_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path

    # ---- Assignment cycle ----
    interval_seconds: float
    lease_minutes: int
    cooldown_minutes: int
    max_per_worker: int

    # ---- Generation guard ----
    generation_guard: bool
    generation_guard_seconds: float

    # None => system randomness
    shuffle_seed: Optional[int]

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "pulsegrid") or "pulsegrid"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        scheduler_enabled = _env_bool(_k("SCHEDULER_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/pulsegrid"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "pulsegrid.sqlite3")

        interval_seconds = _env_float(_k("INTERVAL_SECONDS"), 300.0)
        lease_minutes = _env_int(_k("LEASE_MINUTES"), 10)
        cooldown_minutes = _env_int(_k("COOLDOWN_MINUTES"), 30)
        max_per_worker = _env_int(_k("MAX_PER_WORKER"), 5)

        generation_guard = _env_bool(_k("GENERATION_GUARD"), True)
        generation_guard_seconds = _env_float(_k("GENERATION_GUARD_SECONDS"), 120.0)

        shuffle_seed = _env_optional_int(_k("SHUFFLE_SEED"))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            scheduler_enabled=scheduler_enabled,
            data_dir=data_dir,
            db_path=db_path,
            interval_seconds=interval_seconds,
            lease_minutes=lease_minutes,
            cooldown_minutes=cooldown_minutes,
            max_per_worker=max_per_worker,
            generation_guard=generation_guard,
            generation_guard_seconds=generation_guard_seconds,
            shuffle_seed=shuffle_seed,
        )


SETTINGS = Settings.from_env()

# ---- Optional local overrides (never committed) ----
# Prefer .env; use config_local.py only for safe overrides.
try:
    import config_local as _config_local  # type: ignore

    if hasattr(_config_local, "CONSOLE_ENABLED"):
        object.__setattr__(SETTINGS, "console_enabled", bool(_config_local.CONSOLE_ENABLED))  # type: ignore[misc]
    if hasattr(_config_local, "SCHEDULER_ENABLED"):
        object.__setattr__(SETTINGS, "scheduler_enabled", bool(_config_local.SCHEDULER_ENABLED))  # type: ignore[misc]
    if hasattr(_config_local, "INTERVAL_SECONDS"):
        object.__setattr__(SETTINGS, "interval_seconds", float(_config_local.INTERVAL_SECONDS))  # type: ignore[misc]
except Exception:
    pass


def get_settings() -> Settings:
    return SETTINGS
