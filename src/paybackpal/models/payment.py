"""Payment entity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

ZERO = Decimal("0")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Coerce user or storage input into a Decimal without float artefacts."""

    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def clamp_amount(value: Decimal | int | float | str) -> Decimal:
    """Floor monetary input at zero; negative and non-finite amounts become zero."""

    amount = to_decimal(value)
    if not amount.is_finite():
        return ZERO
    return amount if amount > ZERO else ZERO


@dataclass(frozen=True, slots=True)
class Payment:
    """A single recorded payment against the debt."""

    amount: Decimal
    date: datetime = field(default_factory=datetime.now)
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", clamp_amount(self.amount))
