"""Concrete repository implementations using SQLModel."""

from .settings import SQLModelSettingsRepository

__all__ = ["SQLModelSettingsRepository"]
