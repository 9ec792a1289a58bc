"""Payment history helpers: filtering, monthly grouping and totals."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional

from ..models.payment import ZERO, Payment


@dataclass
class HistoryFilters:
    """Filters applied to payment listings. Bounds are inclusive."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    min_amount: Optional[Decimal] = None


@dataclass
class MonthGroup:
    """Payments falling in one calendar month, newest first."""

    month: date
    payments: list[Payment] = field(default_factory=list)

    @property
    def total(self) -> Decimal:
        return sum((p.amount for p in self.payments), ZERO)

    @property
    def label(self) -> str:
        return self.month.strftime("%B %Y")


def _day(value: datetime | date) -> date:
    return value.date() if isinstance(value, datetime) else value


def filter_payments(payments: Iterable[Payment], filters: HistoryFilters) -> list[Payment]:
    """Apply ``filters`` and return matches sorted newest first."""

    matched = []
    for payment in payments:
        day = payment.date.date()
        if filters.start_date and day < _day(filters.start_date):
            continue
        if filters.end_date and day > _day(filters.end_date):
            continue
        if filters.min_amount is not None and payment.amount < filters.min_amount:
            continue
        matched.append(payment)
    return sorted(matched, key=lambda p: p.date, reverse=True)


def group_by_month(payments: Iterable[Payment]) -> list[MonthGroup]:
    """Bucket payments by calendar month; most recent month first."""

    buckets: dict[date, list[Payment]] = defaultdict(list)
    for payment in payments:
        buckets[payment.date.date().replace(day=1)].append(payment)
    return [
        MonthGroup(month=month, payments=sorted(items, key=lambda p: p.date, reverse=True))
        for month, items in sorted(buckets.items(), reverse=True)
    ]


def monthly_totals(payments: Iterable[Payment], months: int = 6, today: Optional[date] = None) -> list[tuple[date, Decimal]]:
    """Return (month start, total paid) for the last ``months`` months, oldest first.

    Months without payments are included with a zero total.
    """

    anchor = (today or date.today()).replace(day=1)
    starts: list[date] = []
    year, month = anchor.year, anchor.month
    for _ in range(max(months, 0)):
        starts.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    starts.reverse()

    totals = {start: ZERO for start in starts}
    for payment in payments:
        key = payment.date.date().replace(day=1)
        if key in totals:
            totals[key] += payment.amount
    return [(start, totals[start]) for start in starts]


def balance_timeline(original_amount: Decimal, payments: Iterable[Payment]) -> list[tuple[datetime, Decimal]]:
    """Running balance after each payment in date order."""

    remaining = original_amount
    points: list[tuple[datetime, Decimal]] = []
    for payment in sorted(payments, key=lambda p: p.date):
        remaining = max(ZERO, remaining - payment.amount)
        points.append((payment.date, remaining))
    return points
