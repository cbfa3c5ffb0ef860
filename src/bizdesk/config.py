from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import sys


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    db_path: Path
    logs_dir: Path


@dataclass(frozen=True)
class Settings:
    environment: str = "development"
    low_stock_threshold: int = 10
    session_max_age: int = 60 * 60 * 24 * 7
    retry_max_attempts: int = 3
    retry_backoff_seconds: float = 5.0

    @property
    def production(self) -> bool:
        return self.environment == "production"


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


def get_app_paths(app_name: str = "BizDesk") -> AppPaths:
    if sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    override = os.environ.get("BIZDESK_DB_PATH", "").strip()
    db = Path(override) if override else base / "bizdesk.db"
    logs = base / "logs"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)
    db.parent.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, db_path=db, logs_dir=logs)


def load_settings() -> Settings:
    return Settings(
        environment=os.environ.get("BIZDESK_ENV", "development").strip().lower() or "development",
        low_stock_threshold=_env_int("BIZDESK_LOW_STOCK_THRESHOLD", 10),
        session_max_age=_env_int("BIZDESK_SESSION_MAX_AGE", 60 * 60 * 24 * 7),
        retry_max_attempts=_env_int("BIZDESK_RETRY_MAX_ATTEMPTS", 3),
        retry_backoff_seconds=_env_float("BIZDESK_RETRY_BACKOFF_SECONDS", 5.0),
    )
