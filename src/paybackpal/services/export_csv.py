"""CSV export helpers for sharing the audit trail and payment history."""

from __future__ import annotations

import csv
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable

from ..models.audit import AuditEvent
from ..models.payment import Payment


def _serialize_value(value):
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return str(value)


def _write_rows(output_path: Path, headers: list[str], rows: Iterable[dict]) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Use newline='' for csv on Windows
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(
            fh, fieldnames=headers, extrasaction="ignore", quoting=csv.QUOTE_MINIMAL
        )
        writer.writeheader()
        for row in rows:
            writer.writerow({key: _serialize_value(row.get(key)) for key in headers})

    return output_path


def export_audit_csv(*, events: Iterable[AuditEvent], output_path: Path) -> Path:
    """Write the audit snapshot to CSV at `output_path`.

    Columns are deterministic: id, timestamp, kind, message. Rows keep the
    order they are given in.
    """

    headers = ["id", "timestamp", "kind", "message"]
    rows = (
        {"id": e.id, "timestamp": e.timestamp, "kind": e.kind, "message": e.message}
        for e in events
    )
    return _write_rows(output_path, headers, rows)


def export_payments_csv(*, payments: Iterable[Payment], output_path: Path) -> Path:
    """Write payments to CSV with columns id, date, amount."""

    headers = ["id", "date", "amount"]
    rows = ({"id": p.id, "date": p.date, "amount": p.amount} for p in payments)
    return _write_rows(output_path, headers, rows)
