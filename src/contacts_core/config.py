# src/contacts_core/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole process.
- Every component still takes explicit values, so tests never need the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "CONTACTS"

load_dotenv(override=False)


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


def _env_list(name: str, default: str) -> str:
    """Dictionaries are kept as comma-separated strings; only whitespace is normalized."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return ",".join(p.strip() for p in raw.split(",") if p.strip())


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


DEFAULT_NAME_PREFIXES = "Mr, Ms, Mrs, Dr, Prof, Rev, Sir"
DEFAULT_FAMILY_NAME_PREFIXES = "d', st, st., von, van, de, der, da, di, le, la, du, del"
DEFAULT_NAME_SUFFIXES = "Jr, Sr, II, III, IV, M.D., MD, D.D.S., Ph.D., PhD, Esq"
DEFAULT_NAME_CONJUNCTIONS = "&, and, or"


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    console_enabled: bool

    # ---- Local data paths ----
    data_dir: Path
    database_path: Path
    photo_dir: Path

    # ---- Background work ----
    task_shutdown_timeout_seconds: float
    aggregation_delay_ms: int
    max_aggregation_delay_ms: int
    delayed_execution_timeout_ms: int

    # ---- Photos ----
    max_display_photo_dim: int
    max_thumbnail_dim: int

    # ---- Name matching ----
    name_distance_max_length: int
    name_prefixes: str
    name_family_name_prefixes: str
    name_suffixes: str
    name_conjunctions: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "contacts-core") or "contacts-core"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/contacts"))
        database_path = _env_path(_k("DATABASE_PATH"), data_dir / "contacts.sqlite3")
        photo_dir = _env_path(_k("PHOTO_DIR"), data_dir / "photos")

        task_shutdown_timeout_seconds = _env_float(_k("TASK_SHUTDOWN_TIMEOUT_SECONDS"), 60.0)
        aggregation_delay_ms = _env_int(_k("AGGREGATION_DELAY_MS"), 1000)
        max_aggregation_delay_ms = _env_int(_k("MAX_AGGREGATION_DELAY_MS"), 10000)
        delayed_execution_timeout_ms = _env_int(_k("DELAYED_EXECUTION_TIMEOUT_MS"), 500)

        max_display_photo_dim = _env_int(_k("MAX_DISPLAY_PHOTO_DIM"), 720)
        max_thumbnail_dim = _env_int(_k("MAX_THUMBNAIL_DIM"), 96)

        name_distance_max_length = _env_int(_k("NAME_DISTANCE_MAX_LENGTH"), 30)
        name_prefixes = _env_list(_k("NAME_PREFIXES"), DEFAULT_NAME_PREFIXES)
        name_family_name_prefixes = _env_list(
            _k("NAME_FAMILY_NAME_PREFIXES"), DEFAULT_FAMILY_NAME_PREFIXES
        )
        name_suffixes = _env_list(_k("NAME_SUFFIXES"), DEFAULT_NAME_SUFFIXES)
        name_conjunctions = _env_list(_k("NAME_CONJUNCTIONS"), DEFAULT_NAME_CONJUNCTIONS)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            database_path=database_path,
            photo_dir=photo_dir,
            task_shutdown_timeout_seconds=task_shutdown_timeout_seconds,
            aggregation_delay_ms=aggregation_delay_ms,
            max_aggregation_delay_ms=max_aggregation_delay_ms,
            delayed_execution_timeout_ms=delayed_execution_timeout_ms,
            max_display_photo_dim=max_display_photo_dim,
            max_thumbnail_dim=max_thumbnail_dim,
            name_distance_max_length=name_distance_max_length,
            name_prefixes=name_prefixes,
            name_family_name_prefixes=name_family_name_prefixes,
            name_suffixes=name_suffixes,
            name_conjunctions=name_conjunctions,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
