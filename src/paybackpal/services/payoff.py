"""Payoff date estimators.

Two distinct questions are answered here:

- ``estimate_payoff_date`` projects from actual payment history
  ("given how I have been paying").
- ``estimate_fixed_cadence_payoff`` projects from the stated per-paycheck
  amount ("given my plan").
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from ..models.payment import ZERO, Payment

DEFAULT_WINDOW_SIZE = 5
DEFAULT_CADENCE_DAYS = 14
PAYDAY_WEEKDAY = 2  # Wednesday
PAYDAY_HOUR = 9
SECONDS_PER_DAY = 86_400


def estimate_payoff_date(
    balance: Decimal,
    payments: Iterable[Payment],
    window_size: int = DEFAULT_WINDOW_SIZE,
) -> Optional[datetime]:
    """Project a payoff date from the most recent payments.

    Averages the amount and spacing of the last ``window_size`` payments
    (sorted by date, so out-of-order entry is fine) and extends that rhythm
    until the balance is covered. With a single sampled payment the spacing
    defaults to a biweekly paycheck.

    Returns:
        The projected date, or None when there is nothing to project
        or the date falls past the end of the calendar.
    """
    recorded = list(payments)
    if balance <= ZERO or not recorded or window_size <= 0:
        return None

    recent = sorted(recorded, key=lambda p: p.date)[-window_size:]
    amounts = [p.amount for p in recent if p.amount > ZERO]
    if not amounts:
        return None

    avg_payment = sum(amounts, ZERO) / len(amounts)

    if len(recent) >= 2:
        deltas = [
            (later.date - earlier.date).total_seconds() / SECONDS_PER_DAY
            for earlier, later in zip(recent, recent[1:])
        ]
        avg_interval_days = max(sum(deltas) / len(deltas), 1.0)
    else:
        avg_interval_days = float(DEFAULT_CADENCE_DAYS)

    periods_needed = math.ceil(balance / avg_payment)
    base_date = recent[-1].date
    days_to_add = (Decimal(periods_needed) * Decimal(str(avg_interval_days))).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP
    )
    try:
        return base_date + timedelta(days=int(days_to_add))
    except OverflowError:
        return None


def estimate_fixed_cadence_payoff(
    balance: Decimal,
    recurring_amount: Decimal,
    start_date: datetime,
    cadence_days: int = DEFAULT_CADENCE_DAYS,
) -> Optional[datetime]:
    """Project a payoff date assuming ``recurring_amount`` every ``cadence_days``."""
    if recurring_amount <= ZERO:
        return None
    periods_needed = math.ceil(max(balance, ZERO) / recurring_amount)
    try:
        return start_date + timedelta(days=periods_needed * cadence_days)
    except OverflowError:
        return None


def next_payday(now: Optional[datetime] = None) -> datetime:
    """Return the next Wednesday at 09:00 strictly after ``now``."""
    current = now or datetime.now()
    candidate = current.replace(hour=PAYDAY_HOUR, minute=0, second=0, microsecond=0)
    days_ahead = (PAYDAY_WEEKDAY - candidate.weekday()) % 7
    candidate += timedelta(days=days_ahead)
    if candidate <= current:
        candidate += timedelta(days=7)
    return candidate


def periods_remaining(balance: Decimal, amount: Decimal) -> Optional[int]:
    """Number of whole payments of ``amount`` needed to clear ``balance``."""
    if amount <= ZERO:
        return None
    if balance <= ZERO:
        return 0
    return math.ceil(balance / amount)
