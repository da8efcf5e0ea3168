"""Inventory — per-size stock checks, guarded decrements and restores.

Invariants:
    - Lines for the same (product, size) are aggregated before touching the DB
    - Decrement is one UPDATE ... WHERE quantity >= requested; a line that would
      go negative changes nothing and is reported
    - Restore increments, creating the size row when it does not exist
    - Product ids that are not valid UUIDs count as unknown products
    - No commit here: the calling service commits the whole operation

Design Decisions:
    - Guarded UPDATE over read-modify-write: two concurrent confirmations can
      never oversell a size, no row lock required
    - StockChange.applied lists the lines that were actually changed so the
      order can record per-item stockDeducted
"""

import logging
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.core.stock import StockLine, aggregate_lines, find_shortages
from stylesage.models.product import Product, StockLevel

logger = logging.getLogger(__name__)


@dataclass
class StockCheck:
    valid: bool
    out_of_stock_items: list[dict] = field(default_factory=list)


@dataclass
class StockChange:
    success: bool
    errors: list[str] = field(default_factory=list)
    applied: list[tuple[str, str]] = field(default_factory=list)


def _as_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class InventoryService:
    """Stock bookkeeping over the stock_levels table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _existing_products(self, product_ids: Iterable[str]) -> set[str]:
        ids = {pid: _as_uuid(pid) for pid in set(product_ids)}
        valid = [u for u in ids.values() if u is not None]
        if not valid:
            return set()
        result = await self.db.execute(
            select(Product.id).where(Product.id.in_(valid)),
        )
        found = {row for row in result.scalars().all()}
        return {pid for pid, u in ids.items() if u in found}

    async def available(
        self, lines: Iterable[StockLine],
    ) -> Mapping[tuple[str, str], int]:
        """On-hand quantity for every (product, size) the lines mention."""
        lines = list(lines)
        ids = {pid: _as_uuid(pid) for pid in {line.product_id for line in lines}}
        valid = [u for u in ids.values() if u is not None]
        if not valid:
            return {}
        result = await self.db.execute(
            select(StockLevel.product_id, StockLevel.size, StockLevel.quantity)
            .where(StockLevel.product_id.in_(valid)),
        )
        by_uuid = {(pid, size): qty for pid, size, qty in result.all()}
        return {
            (line.product_id, line.size): by_uuid.get((ids[line.product_id], line.size), 0)
            for line in lines
            if ids[line.product_id] is not None
        }

    async def validate_stock(self, lines: Iterable[StockLine]) -> StockCheck:
        lines = list(lines)
        shortages = find_shortages(lines, await self.available(lines))
        return StockCheck(valid=not shortages, out_of_stock_items=shortages)

    async def get_current_stock(self, product_id: str, size: str) -> int:
        pid = _as_uuid(product_id)
        if pid is None:
            return 0
        result = await self.db.execute(
            select(StockLevel.quantity)
            .where(StockLevel.product_id == pid, StockLevel.size == size),
        )
        return result.scalar_one_or_none() or 0

    async def reduce_stock(self, lines: Iterable[StockLine]) -> StockChange:
        lines = aggregate_lines(lines)
        known = await self._existing_products(line.product_id for line in lines)
        change = StockChange(success=True)
        for line in lines:
            if line.product_id not in known:
                change.errors.append(f"Product {line.product_id} not found")
                continue
            result = await self.db.execute(
                update(StockLevel)
                .where(
                    StockLevel.product_id == _as_uuid(line.product_id),
                    StockLevel.size == line.size,
                    StockLevel.quantity >= line.quantity,
                )
                .values(quantity=StockLevel.quantity - line.quantity)
                .execution_options(synchronize_session=False),
            )
            if result.rowcount == 1:
                change.applied.append((line.product_id, line.size))
            else:
                change.errors.append(
                    f"Insufficient stock for product {line.product_id}, size {line.size}",
                )
        change.success = not change.errors
        if change.errors:
            logger.warning(f"Stock reduction incomplete: {change.errors}")
        return change

    async def restore_stock(self, lines: Iterable[StockLine]) -> StockChange:
        lines = aggregate_lines(lines)
        known = await self._existing_products(line.product_id for line in lines)
        change = StockChange(success=True)
        for line in lines:
            if line.product_id not in known:
                change.errors.append(f"Product {line.product_id} not found")
                continue
            pid = _as_uuid(line.product_id)
            result = await self.db.execute(
                update(StockLevel)
                .where(StockLevel.product_id == pid, StockLevel.size == line.size)
                .values(quantity=StockLevel.quantity + line.quantity)
                .execution_options(synchronize_session=False),
            )
            if result.rowcount == 0:
                self.db.add(StockLevel(
                    product_id=pid, size=line.size, quantity=line.quantity,
                ))
            change.applied.append((line.product_id, line.size))
        change.success = not change.errors
        return change

    async def replace_levels(self, product: Product, stock: Mapping[str, int]) -> None:
        """Make product.stock_levels equal the given size map."""
        existing = {level.size: level for level in product.stock_levels}
        for size, quantity in stock.items():
            if size in existing:
                existing.pop(size).quantity = quantity
            else:
                product.stock_levels.append(StockLevel(size=size, quantity=quantity))
        for level in existing.values():
            product.stock_levels.remove(level)
