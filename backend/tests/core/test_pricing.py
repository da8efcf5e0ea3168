"""Tests for order pricing — shipping threshold, tax and gateway amount."""

from decimal import Decimal

from stylesage.core.pricing import PriceLine, compute_totals, shipping_cost


def test_totals_for_small_order_include_flat_shipping_and_tax():
    totals = compute_totals([PriceLine(Decimal("500"), 2)])
    assert totals.subtotal == Decimal("1000.00")
    assert totals.shipping == Decimal("746.00")
    assert totals.tax == Decimal("80.00")
    assert totals.total == Decimal("1826.00")
    assert totals.amount_minor == 182600


def test_shipping_is_charged_at_exactly_the_threshold():
    assert shipping_cost(Decimal("6225")) == Decimal("746.00")


def test_shipping_is_free_above_the_threshold():
    assert shipping_cost(Decimal("6225.01")) == Decimal("0.00")


def test_tax_rounded_half_up_to_cents():
    totals = compute_totals([PriceLine(Decimal("10.05"), 1)])
    assert totals.tax == Decimal("0.80")


def test_custom_rates_from_settings_are_honoured():
    totals = compute_totals(
        [PriceLine(Decimal("100"), 1)],
        shipping_flat=Decimal("50"),
        free_shipping_threshold=Decimal("99"),
        tax_rate=Decimal("0.10"),
    )
    assert totals.shipping == Decimal("0.00")
    assert totals.total == Decimal("110.00")


def test_empty_lines_give_zero_subtotal():
    totals = compute_totals([])
    assert totals.subtotal == Decimal("0.00")
