"""Debt ledger aggregate and its persisted JSON record."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Iterable, Optional
from uuid import UUID

from .payment import ZERO, Payment, clamp_amount, to_decimal

DEFAULT_ORIGINAL_AMOUNT = Decimal("5055.00")

# Numeric dates written by the mobile app count seconds from this instant.
_REFERENCE_DATE = datetime(2001, 1, 1, tzinfo=timezone.utc)

PERSISTED_FIELDS = ("originalAmount", "payments", "paycheckPaymentAmount")


@dataclass
class DebtLedger:
    """Original debt, recorded payments and the planned per-paycheck amount."""

    original_amount: Decimal = DEFAULT_ORIGINAL_AMOUNT
    payments: list[Payment] = field(default_factory=list)
    recurring_payment_amount: Decimal = ZERO

    @property
    def total_paid(self) -> Decimal:
        return sum((max(ZERO, p.amount) for p in self.payments), ZERO)

    @property
    def current_balance(self) -> Decimal:
        return max(ZERO, self.original_amount - self.total_paid)

    @property
    def is_paid_off(self) -> bool:
        return self.current_balance == ZERO

    def add(self, payment: Payment) -> Payment:
        self.payments.append(payment)
        return payment

    def remove(self, payment_id: UUID) -> Optional[Payment]:
        """Remove the payment with ``payment_id``; return it, or None if absent."""
        for index, payment in enumerate(self.payments):
            if payment.id == payment_id:
                return self.payments.pop(index)
        return None

    def set_recurring_amount(self, amount: Decimal | int | float | str) -> Decimal:
        self.recurring_payment_amount = clamp_amount(amount)
        return self.recurring_payment_amount


# ---------------------------------------------------------------------------
# JSON record
# ---------------------------------------------------------------------------


def _encode_date(value: datetime) -> str:
    return value.isoformat()


def _decode_date(value: Any) -> datetime:
    if isinstance(value, (int, float)):
        instant = _REFERENCE_DATE + timedelta(seconds=float(value))
        return instant.astimezone().replace(tzinfo=None)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def payment_to_dict(payment: Payment) -> dict[str, str]:
    return {
        "id": str(payment.id),
        "amount": str(payment.amount),
        "date": _encode_date(payment.date),
    }


def payment_from_dict(data: dict[str, Any]) -> Payment:
    return Payment(
        id=UUID(str(data["id"])),
        amount=to_decimal(data["amount"]),
        date=_decode_date(data["date"]),
    )


def ledger_to_dict(ledger: DebtLedger) -> dict[str, Any]:
    """Return the persisted record; the audit trail is never part of it."""
    return {
        "originalAmount": str(ledger.original_amount),
        "payments": [payment_to_dict(p) for p in ledger.payments],
        "paycheckPaymentAmount": str(ledger.recurring_payment_amount),
    }


def ledger_from_dict(data: dict[str, Any]) -> DebtLedger:
    """Build a ledger from a persisted record.

    Raises:
        KeyError, ValueError, TypeError: when the record is malformed.
    """
    payments: Iterable[dict[str, Any]] = data["payments"]
    return DebtLedger(
        original_amount=clamp_amount(data["originalAmount"]),
        payments=[payment_from_dict(p) for p in payments],
        recurring_payment_amount=clamp_amount(data["paycheckPaymentAmount"]),
    )


def encode_ledger(ledger: DebtLedger) -> bytes:
    return json.dumps(ledger_to_dict(ledger), separators=(",", ":")).encode("utf-8")


def decode_ledger(raw: bytes | str) -> DebtLedger:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    return ledger_from_dict(json.loads(raw))
