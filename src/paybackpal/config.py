"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _env_decimal(name: str, default: str) -> Decimal:
    value = os.getenv(name, default)
    try:
        return Decimal(value.strip())
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be a decimal amount, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "PaybackPal"
    DB_FILENAME = "paybackpal.db"
    LEDGER_STORAGE_KEY = "debtData"
    ANCHOR_STORAGE_KEY = "anchorPayday"
    AUTHORIZATION_STORAGE_KEY = "notificationAuthorization"
    REMINDER_JOBS_TABLE = "reminder_jobs"

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("PAYBACKPAL_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("PAYBACKPAL_DATABASE_URL", self._build_sqlite_url())
        self.DEFAULT_ORIGINAL_AMOUNT = _env_decimal("PAYBACKPAL_ORIGINAL_AMOUNT", "5055.00")
        self.REMINDER_COUNT = _env_int("PAYBACKPAL_REMINDER_COUNT", 6)
        self.NOTIFICATIONS_AUTO_GRANT = _env_bool(
            "PAYBACKPAL_NOTIFICATIONS_AUTO_GRANT", default=False
        )
        if self.DEFAULT_ORIGINAL_AMOUNT < 0:
            raise ValueError("PAYBACKPAL_ORIGINAL_AMOUNT cannot be negative.")
        if self.REMINDER_COUNT < 0:
            raise ValueError("PAYBACKPAL_REMINDER_COUNT cannot be negative.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory holding the database, logs and exports."""

        data_root = os.getenv("PAYBACKPAL_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations fall back to user-local storage.
            fallback_path = Path.home() / ".local" / "share" / self.APP_NAME.lower()
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        return {"connect_args": connect_args}


class DevConfig(BaseConfig):
    """Development configuration: verbose console logging whatever the environment says."""

    def __init__(self) -> None:
        super().__init__()
        self.DEV_MODE = True


class TestingConfig(BaseConfig):
    """Configuration used by the test-suite; always grants notifications."""

    def __init__(self) -> None:
        super().__init__()
        self.DEV_MODE = True
        self.NOTIFICATIONS_AUTO_GRANT = True
