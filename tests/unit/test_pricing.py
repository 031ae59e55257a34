"""Unit tests for order totals and currency helpers."""

from decimal import Decimal

import pytest
from libs.common.currency import cents_to_dollars, dollars_to_cents, format_dollars
from services.order_service.services.pricing import (
    OrderTotals,
    PriceLine,
    PricingPolicy,
    calculate_totals,
)


# ---------------------------------------------------------------------------
# calculate_totals
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_totals_below_free_shipping_threshold():
    """3 x $20.00 -> subtotal 60, tax 6, shipping 10, total 76."""
    totals = calculate_totals([PriceLine(unit_price_cents=2000, quantity=3)])

    assert totals.subtotal_cents == 6000
    assert totals.tax_cents == 600
    assert totals.shipping_cents == 1000
    assert totals.total_cents == 7600
    assert totals.total == Decimal("76.00")


@pytest.mark.unit
def test_free_shipping_at_exactly_one_hundred_dollars():
    totals = calculate_totals([PriceLine(unit_price_cents=5000, quantity=2)])

    assert totals.subtotal_cents == 10000
    assert totals.shipping_cents == 0
    assert totals.total == Decimal("110.00")


@pytest.mark.unit
def test_shipping_charged_one_cent_below_threshold():
    totals = calculate_totals([PriceLine(unit_price_cents=9999, quantity=1)])

    assert totals.shipping_cents == 1000


@pytest.mark.unit
def test_tax_rounds_half_up_once_on_the_subtotal():
    """Per-line rounding would give 2 cents here; rounding the sum gives 3."""
    lines = [
        PriceLine(unit_price_cents=14, quantity=1),  # tax 1.4 cents
        PriceLine(unit_price_cents=14, quantity=1),  # tax 1.4 cents
    ]

    totals = calculate_totals(lines)

    assert totals.subtotal_cents == 28
    assert totals.tax_cents == 3


@pytest.mark.unit
def test_total_always_equals_sum_of_parts():
    for price, qty in [(1, 1), (333, 3), (1999, 7), (12345, 2), (99, 101)]:
        totals = calculate_totals([PriceLine(price, qty)])
        assert totals.total_cents == (
            totals.subtotal_cents + totals.tax_cents + totals.shipping_cents
        )
        assert totals.total == totals.subtotal + totals.tax + totals.shipping


@pytest.mark.unit
def test_multiple_lines_are_summed():
    totals = calculate_totals(
        [PriceLine(2000, 2), PriceLine(1250, 1), PriceLine(99, 3)]
    )

    assert totals.subtotal_cents == 4000 + 1250 + 297


@pytest.mark.unit
def test_custom_policy_is_respected():
    policy = PricingPolicy(
        tax_rate=Decimal("0.075"),
        free_shipping_threshold_cents=5000,
        flat_shipping_cents=499,
    )

    small = calculate_totals([PriceLine(1000, 1)], policy)
    large = calculate_totals([PriceLine(5000, 1)], policy)

    assert small.tax_cents == 75
    assert small.shipping_cents == 499
    assert large.shipping_cents == 0


@pytest.mark.unit
def test_policy_from_settings_uses_defaults():
    policy = PricingPolicy.from_settings()

    assert policy.tax_rate == Decimal("0.10")
    assert policy.free_shipping_threshold_cents == 10000
    assert policy.flat_shipping_cents == 1000


@pytest.mark.unit
def test_rejects_non_positive_quantity():
    with pytest.raises(ValueError):
        calculate_totals([PriceLine(1000, 0)])


@pytest.mark.unit
def test_order_totals_dollar_views():
    totals = OrderTotals(subtotal_cents=6000, tax_cents=600, shipping_cents=1000)

    assert totals.subtotal == Decimal("60.00")
    assert totals.tax == Decimal("6.00")
    assert totals.shipping == Decimal("10.00")


# ---------------------------------------------------------------------------
# currency helpers
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_dollars_to_cents_rounds_half_up():
    assert dollars_to_cents("19.995") == 2000
    assert dollars_to_cents(Decimal("0.10")) == 10
    assert dollars_to_cents(3) == 300


@pytest.mark.unit
def test_dollars_to_cents_rejects_floats():
    with pytest.raises(TypeError):
        dollars_to_cents(19.99)


@pytest.mark.unit
def test_cents_to_dollars_has_two_places():
    assert str(cents_to_dollars(7600)) == "76.00"
    assert format_dollars(123450) == "$1,234.50"
