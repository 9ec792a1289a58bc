"""Biweekly payday reminder scheduling.

The scheduler never caches permission or pending-state: every status read
goes back to the notification facility, since both can change outside the
app (system settings, the OS purging requests).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional, Protocol

from ..domain.repositories import SettingsRepository
from ..logging_config import get_logger
from .payoff import DEFAULT_CADENCE_DAYS, PAYDAY_HOUR, next_payday

logger = get_logger("reminders")

REMINDER_ID_PREFIX = "payday-reminder-"
REMINDER_TITLE = "Payback time"
REMINDER_BODY = "Payday reminder: make a payment and update the balance."
DEFAULT_REMINDER_COUNT = 6


class AuthorizationStatus(str, Enum):
    """Notification permission as reported by the facility."""

    NOT_DETERMINED = "notDetermined"
    DENIED = "denied"
    AUTHORIZED = "authorized"

    @property
    def granted(self) -> bool:
        return self is AuthorizationStatus.AUTHORIZED


@dataclass(frozen=True)
class TriggerComponents:
    """Calendar fields a one-shot notification fires on (local time)."""

    year: int
    month: int
    day: int
    hour: int
    minute: int

    @classmethod
    def from_datetime(cls, value: datetime) -> "TriggerComponents":
        return cls(value.year, value.month, value.day, value.hour, value.minute)

    def to_datetime(self) -> datetime:
        return datetime(self.year, self.month, self.day, self.hour, self.minute)


@dataclass(frozen=True)
class PendingRequest:
    identifier: str


class NotificationCenter(Protocol):
    """External notification facility consumed by the scheduler."""

    async def request_authorization(self) -> bool:  # pragma: no cover - interface
        ...

    async def get_authorization_status(self) -> AuthorizationStatus:  # pragma: no cover - interface
        ...

    async def list_pending_requests(self) -> list[PendingRequest]:  # pragma: no cover - interface
        ...

    async def schedule_request(
        self, identifier: str, title: str, body: str, trigger: TriggerComponents
    ) -> None:  # pragma: no cover - interface
        """Hand one request to the facility; raise on failure."""
        ...

    async def cancel_pending_requests(self, identifiers: set[str]) -> None:  # pragma: no cover - interface
        ...


def biweekly_occurrences(
    anchor: datetime,
    count: int,
    now: datetime,
    *,
    cadence_days: int = DEFAULT_CADENCE_DAYS,
    hour: int = PAYDAY_HOUR,
) -> list[datetime]:
    """Return ``count`` reminder times on the anchor's cadence, all after ``now``.

    The anchor is pinned to ``hour``:00 on its own day, then stepped forward
    by ``cadence_days`` until it passes ``now``.
    """
    if count <= 0:
        return []
    step = timedelta(days=cadence_days)
    current = anchor.replace(hour=hour, minute=0, second=0, microsecond=0)
    if current <= now:
        # Jump close to now in one step instead of walking every period.
        skipped = (now - current) // step
        current += step * skipped
        while current <= now:
            current += step
    return [current + step * i for i in range(count)]


def _is_ours(identifier: str) -> bool:
    return identifier.startswith(REMINDER_ID_PREFIX)


class ReminderScheduler:
    """Owns this app's payday reminders inside an external notification facility."""

    def __init__(
        self,
        center: NotificationCenter,
        settings_repo: SettingsRepository,
        *,
        anchor_key: str = "anchorPayday",
        default_count: int = DEFAULT_REMINDER_COUNT,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.center = center
        self.settings_repo = settings_repo
        self.anchor_key = anchor_key
        self.default_count = default_count
        self.clock = clock
        self.has_permission = False
        self.is_scheduled = False
        self.scheduled_ids: set[str] = set()
        self._subscribers: list[Callable[["ReminderScheduler"], None]] = []

    # ------------------------------------------------------------------
    # Anchor persistence
    # ------------------------------------------------------------------

    @property
    def anchor_date(self) -> Optional[datetime]:
        raw = self.settings_repo.get_value(self.anchor_key)
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            logger.warning("Ignoring unreadable anchor payday %r", raw)
            return None

    def _store_anchor(self, anchor: Optional[datetime]) -> None:
        try:
            if anchor is None:
                self.settings_repo.delete(self.anchor_key)
            else:
                self.settings_repo.set(
                    self.anchor_key, anchor.isoformat(), description="First payday for reminders"
                )
        except Exception as exc:
            logger.error(f"Failed to persist anchor payday: {exc}", exc_info=True)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callable[["ReminderScheduler"], None]) -> Callable[[], None]:
        """Register ``callback`` for status changes; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback(self)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def refresh_status(self) -> None:
        """Re-derive permission and scheduled flags from the facility."""
        status = await self.center.get_authorization_status()
        pending = await self.center.list_pending_requests()
        self.has_permission = status.granted
        self.scheduled_ids = {p.identifier for p in pending if _is_ours(p.identifier)}
        self.is_scheduled = bool(self.scheduled_ids)
        self._notify()

    async def request_permission(self) -> bool:
        granted = False
        try:
            granted = await self.center.request_authorization()
        except Exception as exc:
            logger.error(f"Error requesting notification permission: {exc}", exc_info=True)
        # The live settings are authoritative even when the prompt said no.
        await self.refresh_status()
        if not granted:
            logger.info("Notification permission not granted")
        return self.has_permission

    async def schedule_from_anchor(
        self, anchor_date: datetime, count: Optional[int] = None
    ) -> list[datetime]:
        """Schedule reminders every 14 days from ``anchor_date`` and remember the anchor."""
        return await self._schedule(anchor_date, count, persist_anchor=True)

    async def schedule_default_biweekly(self, count: Optional[int] = None) -> list[datetime]:
        """Schedule reminders on the default Wednesday 09:00 payday cadence."""
        return await self._schedule(next_payday(self.clock()), count, persist_anchor=False)

    async def clear_scheduled(self) -> None:
        """Remove this app's pending reminders and forget the anchor."""
        await self._cancel_ours()
        self._store_anchor(None)
        await self.refresh_status()

    async def _cancel_ours(self) -> None:
        pending = await self.center.list_pending_requests()
        ours = {p.identifier for p in pending if _is_ours(p.identifier)}
        if ours:
            await self.center.cancel_pending_requests(ours)
            logger.info("Cleared %d pending reminder(s)", len(ours))

    async def _ensure_permission(self) -> bool:
        status = await self.center.get_authorization_status()
        if status is AuthorizationStatus.NOT_DETERMINED:
            await self.request_permission()
            status = await self.center.get_authorization_status()
        self.has_permission = status.granted
        return self.has_permission

    async def _schedule(
        self, anchor: datetime, count: Optional[int], *, persist_anchor: bool
    ) -> list[datetime]:
        count = self.default_count if count is None else count

        if not await self._ensure_permission():
            await self._cancel_ours()
            await self.refresh_status()
            logger.info("Reminders not scheduled: notification permission missing")
            return []

        if persist_anchor:
            self._store_anchor(anchor)

        await self._cancel_ours()

        occurrences = biweekly_occurrences(anchor, count, self.clock())
        accepted: list[datetime] = []
        for index, occurrence in enumerate(occurrences):
            identifier = f"{REMINDER_ID_PREFIX}{index}"
            try:
                await self.center.schedule_request(
                    identifier,
                    REMINDER_TITLE,
                    REMINDER_BODY,
                    TriggerComponents.from_datetime(occurrence),
                )
            except Exception as exc:
                logger.error(
                    f"Error scheduling reminder {identifier}: {exc}",
                    exc_info=True,
                    extra={"reminder_id": identifier, "fire_at": occurrence.isoformat()},
                )
                continue
            accepted.append(occurrence)

        logger.info(
            "Scheduled %d of %d payday reminder(s)",
            len(accepted),
            len(occurrences),
            extra={"anchor": anchor.isoformat()},
        )
        await self.refresh_status()
        return accepted
