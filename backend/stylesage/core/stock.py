"""Stock Maps — per-size quantity maps and legacy total-stock normalization.

Invariants:
    - A stock map is {size_label: int >= 0}; unknown sizes read as 0
    - A legacy integer total is spread over sizes: floor(total / n) each,
      the first (total % n) sizes get one extra unit
    - Stock lines for the same (product, size) are aggregated before any DB update

Design Decisions:
    - Pure functions over the map: the shell turns a map into stock_levels rows
    - DEFAULT_SIZES used when a product carries no size list
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from stylesage.core.domain_types import DEFAULT_SIZES


@dataclass(frozen=True)
class StockLine:
    """One (product, size, quantity) requirement taken from an order or cart."""
    product_id: str
    size: str
    quantity: int


def normalize_stock(
    stock: int | Mapping[str, int] | None,
    sizes: Iterable[str] | None = None,
) -> dict[str, int]:
    """Return a size → quantity map from either a map or a legacy total."""
    size_list = list(sizes) if sizes else list(DEFAULT_SIZES)

    if stock is None:
        return {}

    if isinstance(stock, Mapping):
        return {str(size): max(int(qty), 0) for size, qty in stock.items()}

    total = max(int(stock), 0)
    per_size, remainder = divmod(total, len(size_list))
    return {
        size: per_size + (1 if index < remainder else 0)
        for index, size in enumerate(size_list)
    }


def total_stock(
    stock: int | Mapping[str, int] | None,
    sizes: Iterable[str] | None = None,
) -> int:
    if isinstance(stock, int):
        return stock
    return sum(normalize_stock(stock, sizes).values())


def aggregate_lines(lines: Iterable[StockLine]) -> list[StockLine]:
    """Merge lines sharing (product_id, size); order of first appearance is kept."""
    totals: dict[tuple[str, str], int] = {}
    for line in lines:
        key = (line.product_id, line.size)
        totals[key] = totals.get(key, 0) + line.quantity
    return [
        StockLine(product_id=pid, size=size, quantity=qty)
        for (pid, size), qty in totals.items()
    ]


def find_shortages(
    lines: Iterable[StockLine],
    available: Mapping[tuple[str, str], int],
) -> list[dict]:
    """Compare requirements to on-hand stock; missing keys count as 0 available."""
    shortages = []
    for line in aggregate_lines(lines):
        on_hand = available.get((line.product_id, line.size), 0)
        if on_hand < line.quantity:
            shortages.append({
                "productId": line.product_id,
                "size": line.size,
                "requestedQty": line.quantity,
                "availableQty": on_hand,
            })
    return shortages
