"""Repository protocol definitions for domain layer."""

from .settings import SettingsRepository

__all__ = ["SettingsRepository"]
