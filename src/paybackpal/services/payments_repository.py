"""Persistence boundary for the debt ledger.

Every mutation goes through ``PaymentsRepository`` so that the ledger
change, its audit entry and the write to storage happen together.
Storage failures are logged and swallowed: the in-memory ledger stays
usable even when it could not be saved.
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from ..domain.repositories import SettingsRepository
from ..logging_config import get_logger
from ..models.audit import AuditEvent, AuditKind, AuditLog
from ..models.ledger import DEFAULT_ORIGINAL_AMOUNT, DebtLedger, decode_ledger, encode_ledger
from ..models.payment import Payment
from .payoff import estimate_fixed_cadence_payoff, estimate_payoff_date, next_payday

logger = get_logger("payments")

LEDGER_KEY = "debtData"


def format_currency(amount: Decimal) -> str:
    return f"${amount:,.2f}"


class PaymentsRepository:
    """Owns the single ledger and the session audit log."""

    def __init__(
        self,
        settings_repo: SettingsRepository,
        *,
        storage_key: str = LEDGER_KEY,
        default_original_amount: Decimal = DEFAULT_ORIGINAL_AMOUNT,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.settings_repo = settings_repo
        self.storage_key = storage_key
        self.clock = clock
        self.audit_log = AuditLog(clock=clock)
        self._subscribers: list[Callable[[DebtLedger], None]] = []

        loaded = self._load()
        if loaded is None:
            self.ledger = DebtLedger(original_amount=default_original_amount)
            self.audit_log.record(
                AuditKind.CREATED,
                f"Created debt of {format_currency(self.ledger.original_amount)}",
            )
            self._save()
        else:
            self.ledger = loaded

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def _load(self) -> Optional[DebtLedger]:
        raw = self.settings_repo.get_value(self.storage_key)
        if raw is None:
            return None
        try:
            return decode_ledger(raw)
        except (ValueError, KeyError, TypeError, ArithmeticError) as exc:
            logger.warning(
                f"Stored ledger could not be decoded, starting fresh: {exc}",
                extra={"storage_key": self.storage_key},
            )
            return None

    def _save(self) -> None:
        try:
            payload = encode_ledger(self.ledger).decode("utf-8")
            self.settings_repo.set(self.storage_key, payload, description="Debt ledger")
        except Exception as exc:
            logger.error(f"Failed to persist ledger: {exc}", exc_info=True)

    def _commit(self) -> None:
        self._save()
        for callback in list(self._subscribers):
            callback(self.ledger)

    def subscribe(self, callback: Callable[[DebtLedger], None]) -> Callable[[], None]:
        """Call ``callback`` with the ledger after every mutation."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_payment(
        self, amount: Decimal | int | float | str, date: Optional[datetime] = None
    ) -> Payment:
        payment = self.ledger.add(Payment(amount=amount, date=date or self.clock()))
        self.audit_log.record(
            AuditKind.PAYMENT_ADDED,
            f"Added payment: {format_currency(payment.amount)} on {payment.date.isoformat()}",
        )
        logger.info("Payment added", extra={"payment_id": str(payment.id)})
        self._commit()
        return payment

    def delete_payment(self, payment_id: UUID) -> bool:
        removed = self.ledger.remove(payment_id)
        if removed is None:
            return False
        self.audit_log.record(
            AuditKind.PAYMENT_REMOVED,
            f"Deleted payment: {format_currency(removed.amount)} on {removed.date.isoformat()}",
        )
        logger.info("Payment deleted", extra={"payment_id": str(payment_id)})
        self._commit()
        return True

    def undo_delete(self, payment: Payment) -> Payment:
        """Re-add a deleted payment's amount as a brand new payment (new id and date)."""
        return self.add_payment(payment.amount)

    def set_recurring_payment_amount(self, amount: Decimal | int | float | str) -> Decimal:
        stored = self.ledger.set_recurring_amount(amount)
        self.audit_log.record(
            AuditKind.RECURRING_AMOUNT_CHANGED,
            f"Updated paycheck amount to {format_currency(stored)}",
        )
        self._commit()
        return stored

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def payments(self) -> list[Payment]:
        return list(self.ledger.payments)

    @property
    def recent_payments(self) -> list[Payment]:
        return sorted(self.ledger.payments, key=lambda p: p.date, reverse=True)

    @property
    def current_balance(self) -> Decimal:
        return self.ledger.current_balance

    @property
    def is_paid_off(self) -> bool:
        return self.ledger.is_paid_off

    def audit_events(self) -> list[AuditEvent]:
        """Audit entries for display, newest first."""
        return self.audit_log.newest_first()

    def audit_snapshot(self) -> tuple[AuditEvent, ...]:
        """Audit entries in recorded order, for export."""
        return self.audit_log.snapshot()

    def estimated_payoff_date(self) -> Optional[datetime]:
        """Projection from actual payment history."""
        return estimate_payoff_date(self.current_balance, self.ledger.payments)

    def planned_payoff_date(self) -> Optional[datetime]:
        """Projection from the stated per-paycheck amount, starting next payday."""
        return estimate_fixed_cadence_payoff(
            self.current_balance,
            self.ledger.recurring_payment_amount,
            next_payday(self.clock()),
        )

    def export_state(self) -> str:
        """Pretty JSON of the persisted record, for diagnostics."""
        return json.dumps(json.loads(encode_ledger(self.ledger)), indent=2)
