"""Product ORM — catalog entries plus their per-size stock rows.

Invariants:
    - slug unique, derived from name
    - stock_levels holds one row per (product_id, size); quantity >= 0 after every
      guarded decrement (see services/inventory.py)
    - Product.stock is a read-only view {size: quantity} over stock_levels

Design Decisions:
    - Size stock map normalized into its own table: a JSON map cannot be
      decremented atomically with a WHERE guard across SQL dialects
    - images/tags/sizes/colors as JSON arrays: read together, never queried by element
    - stock_levels loaded with selectin: every product response includes stock
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean, CheckConstraint, DateTime, Float, ForeignKey, Integer, JSON,
    Numeric, String, Text, UniqueConstraint, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stylesage.db.base import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Product(Base):
    __tablename__ = "products"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(
        String(200), nullable=False, unique=True, index=True,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    original_price: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2), nullable=True,
    )
    images: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    sizes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    colors: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_featured: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    reviews: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now, onupdate=_now,
    )

    stock_levels: Mapped[list["StockLevel"]] = relationship(
        "StockLevel", back_populates="product",
        cascade="all, delete-orphan", lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("rating >= 0 AND rating <= 5", name="ck_products_rating"),
    )

    @property
    def stock(self) -> dict[str, int]:
        return {level.size: level.quantity for level in self.stock_levels}

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "price": float(self.price),
            "originalPrice": (
                float(self.original_price) if self.original_price is not None else None
            ),
            "images": list(self.images or []),
            "category": self.category,
            "tags": list(self.tags or []),
            "sizes": list(self.sizes or []),
            "colors": list(self.colors or []),
            "stock": self.stock,
            "isActive": self.is_active,
            "isFeatured": self.is_featured,
            "rating": self.rating,
            "reviews": self.reviews,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


class StockLevel(Base):
    """Quantity on hand for one size of one product."""
    __tablename__ = "stock_levels"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("products.id", ondelete="CASCADE"), nullable=False,
    )
    size: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    product: Mapped["Product"] = relationship(
        "Product", back_populates="stock_levels",
    )

    __table_args__ = (
        UniqueConstraint("product_id", "size", name="uq_stock_levels_product_size"),
    )
