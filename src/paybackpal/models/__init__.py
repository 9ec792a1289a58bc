"""Domain entities and SQLModel table exports."""

from .audit import AuditEvent, AuditKind, AuditLog
from .ledger import DebtLedger, decode_ledger, encode_ledger
from .payment import Payment
from .settings import AppSetting

__all__ = [
    "AppSetting",
    "AuditEvent",
    "AuditKind",
    "AuditLog",
    "DebtLedger",
    "Payment",
    "decode_ledger",
    "encode_ledger",
]
