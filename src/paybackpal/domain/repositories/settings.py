"""Key/value store protocol."""

from __future__ import annotations

from typing import Optional, Protocol


class SettingsRepository(Protocol):
    """Durable string storage keyed by a fixed name."""

    def get_value(self, key: str) -> Optional[str]:
        """Return the stored value for ``key`` or None."""
        ...

    def set(self, key: str, value: str, description: str | None = None):
        """Create or replace the value for ``key``."""
        ...

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        ...
