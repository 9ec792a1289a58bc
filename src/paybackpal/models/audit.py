"""Session-scoped audit trail of mutating actions.

The log is deliberately kept out of the persisted ledger record: it is a
diagnostic trail for the current session, not durable history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable
from uuid import UUID, uuid4


class AuditKind(str, Enum):
    """Category of an audited action."""

    CREATED = "created"
    PAYMENT_ADDED = "paymentAdded"
    PAYMENT_REMOVED = "paymentRemoved"
    RECURRING_AMOUNT_CHANGED = "recurringAmountChanged"

    @property
    def title(self) -> str:
        return _TITLES[self]


_TITLES = {
    AuditKind.CREATED: "Debt Created",
    AuditKind.PAYMENT_ADDED: "Payment Added",
    AuditKind.PAYMENT_REMOVED: "Payment Deleted",
    AuditKind.RECURRING_AMOUNT_CHANGED: "Paycheck Amount Updated",
}


@dataclass(frozen=True, slots=True)
class AuditEvent:
    """Immutable record of one mutating action."""

    kind: AuditKind
    message: str
    timestamp: datetime = field(default_factory=datetime.now)
    id: UUID = field(default_factory=uuid4)


class AuditLog:
    """Append-only, insertion-ordered sequence of audit events."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock
        self._events: list[AuditEvent] = []

    def record(self, kind: AuditKind, message: str) -> AuditEvent:
        event = AuditEvent(kind=kind, message=message, timestamp=self._clock())
        self._events.append(event)
        return event

    def snapshot(self) -> tuple[AuditEvent, ...]:
        """Return the events in the order they were recorded."""
        return tuple(self._events)

    def newest_first(self) -> list[AuditEvent]:
        """Return the display ordering: most recent timestamp first."""
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self):
        return iter(self.snapshot())
