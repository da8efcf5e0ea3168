"""Order Pricing — subtotal, shipping, tax and gateway amount for a set of lines.

Invariants:
    - Shipping is free when subtotal > free_shipping_threshold, flat otherwise
    - Tax is tax_rate × subtotal
    - Every money value quantized to 2 decimals (ROUND_HALF_UP)
    - Gateway amount is total in minor units (paise), always an int

Design Decisions:
    - Decimal end-to-end: float rounding drift would make the gateway amount
      disagree with the stored total
    - Thresholds passed in (from Settings) so core never reads configuration
"""

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")

DEFAULT_SHIPPING_FLAT = Decimal("746")
DEFAULT_FREE_SHIPPING_THRESHOLD = Decimal("6225")
DEFAULT_TAX_RATE = Decimal("0.08")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceLine:
    unit_price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal

    @property
    def amount_minor(self) -> int:
        return int((self.total * 100).to_integral_value(rounding=ROUND_HALF_UP))


def shipping_cost(
    subtotal: Decimal,
    flat: Decimal = DEFAULT_SHIPPING_FLAT,
    free_threshold: Decimal = DEFAULT_FREE_SHIPPING_THRESHOLD,
) -> Decimal:
    if subtotal > free_threshold:
        return to_money(0)
    return to_money(flat)


def compute_totals(
    lines: Iterable[PriceLine],
    *,
    shipping_flat: Decimal = DEFAULT_SHIPPING_FLAT,
    free_shipping_threshold: Decimal = DEFAULT_FREE_SHIPPING_THRESHOLD,
    tax_rate: Decimal = DEFAULT_TAX_RATE,
) -> OrderTotals:
    subtotal = to_money(sum((line.line_total for line in lines), Decimal("0")))
    shipping = shipping_cost(subtotal, shipping_flat, free_shipping_threshold)
    tax = to_money(subtotal * tax_rate)
    return OrderTotals(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=to_money(subtotal + shipping + tax),
    )
