"""Order totals.

Pure arithmetic over integer cents. Tax is the only step that produces a
fractional cent, so it is the only place rounding happens (half-up, once).
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from libs.common.config import Settings, get_settings
from libs.common.currency import cents_to_dollars, round_cents


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: Decimal = Decimal("0.10")
    free_shipping_threshold_cents: int = 10_000
    flat_shipping_cents: int = 1_000

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PricingPolicy":
        settings = settings or get_settings()
        return cls(
            tax_rate=settings.TAX_RATE,
            free_shipping_threshold_cents=settings.FREE_SHIPPING_THRESHOLD_CENTS,
            flat_shipping_cents=settings.FLAT_SHIPPING_CENTS,
        )


@dataclass(frozen=True)
class PriceLine:
    """One order line: the product's current unit price and the quantity."""

    unit_price_cents: int
    quantity: int

    @property
    def total_cents(self) -> int:
        return self.unit_price_cents * self.quantity


@dataclass(frozen=True)
class OrderTotals:
    subtotal_cents: int
    tax_cents: int
    shipping_cents: int

    @property
    def total_cents(self) -> int:
        return self.subtotal_cents + self.tax_cents + self.shipping_cents

    @property
    def subtotal(self) -> Decimal:
        return cents_to_dollars(self.subtotal_cents)

    @property
    def tax(self) -> Decimal:
        return cents_to_dollars(self.tax_cents)

    @property
    def shipping(self) -> Decimal:
        return cents_to_dollars(self.shipping_cents)

    @property
    def total(self) -> Decimal:
        return cents_to_dollars(self.total_cents)


def calculate_totals(
    lines: Iterable[PriceLine], policy: Optional[PricingPolicy] = None
) -> OrderTotals:
    """Compute subtotal, tax, shipping and total for a set of order lines.

    Example: one line at 2000 cents x 3 gives subtotal 6000, tax 600,
    shipping 1000 (below the free-shipping threshold), total 7600.
    """
    policy = policy or PricingPolicy()

    subtotal_cents = 0
    for line in lines:
        if line.quantity < 1:
            raise ValueError("Line quantity must be at least 1")
        if line.unit_price_cents < 0:
            raise ValueError("Unit price must not be negative")
        subtotal_cents += line.total_cents

    tax_cents = round_cents(Decimal(subtotal_cents) * policy.tax_rate)
    if subtotal_cents >= policy.free_shipping_threshold_cents:
        shipping_cents = 0
    else:
        shipping_cents = policy.flat_shipping_cents

    return OrderTotals(
        subtotal_cents=subtotal_cents,
        tax_cents=tax_cents,
        shipping_cents=shipping_cents,
    )
