"""Currency helpers.

Internal storage unit: cents (smallest USD unit, 100 cents = $1).
API / display unit: dollars as ``Decimal`` with two places (e.g. ``Decimal("76.00")``).

Money is never carried in binary floats: prices and totals are stored as
integer cents and only rendered as dollars at the edges.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

# ─── constants ───────────────────────────────────────────────────────────────

CENTS_PER_DOLLAR: int = 100
CENT = Decimal("0.01")

Number = Union[int, str, Decimal]


# ─── conversion helpers ───────────────────────────────────────────────────────


def quantize(amount: Decimal) -> Decimal:
    """Round a dollar amount to the cent (round half-up)."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def round_cents(amount_cents: Decimal) -> int:
    """Round a fractional cent amount to a whole cent (round half-up)."""
    return int(amount_cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def dollars_to_cents(dollars: Number) -> int:
    """Convert dollars to cents (round half-up). $1 = 100 cents.

    Floats are rejected; pass a ``Decimal`` or a string instead.
    """
    if isinstance(dollars, float):
        raise TypeError("Monetary amounts must not be floats")
    return round_cents(Decimal(dollars) * CENTS_PER_DOLLAR)


def cents_to_dollars(cents: int) -> Decimal:
    """Convert cents to a two-place ``Decimal`` dollar amount."""
    return quantize(Decimal(cents) / CENTS_PER_DOLLAR)


def format_dollars(cents: int) -> str:
    """Human readable amount for emails, e.g. ``$1,234.50``."""
    return f"${cents_to_dollars(cents):,.2f}"
