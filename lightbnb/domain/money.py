from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

CENTS_PER_DOLLAR = 100


def dollars_to_cents(value: float | int | str) -> int:
    """Convert a user-facing dollar amount to integer cents (minor units)."""
    cents = Decimal(str(value)) * CENTS_PER_DOLLAR
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

