"""Order ORM — a placed order with its item, address and payment sub-documents.

Invariants:
    - order_id is the public reference (ORD-...), unique
    - order_status in {placed, confirmed, shipped, delivered, cancelled}
    - payment.status in {pending, completed, failed}; amount in minor units
    - items[i].stockDeducted records whether confirmation decremented that line
    - JSON sub-documents are reassigned, never mutated in place

Design Decisions:
    - items/address/payment as JSON: they are snapshots read with the order, never joined
    - payment.gatewayOrderId duplicated to gateway_order_id column for lookups
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, JSON, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from stylesage.db.base import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    order_id: Mapped[str] = mapped_column(
        String(40), nullable=False, unique=True, index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id"), nullable=False, index=True,
    )
    items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    address: Mapped[dict] = mapped_column(JSON, nullable=False)
    payment: Mapped[dict] = mapped_column(JSON, nullable=False)
    gateway_order_id: Mapped[str] = mapped_column(
        String(100), nullable=False, index=True,
    )
    order_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="placed", index=True,
    )
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    shipping: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    tax: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    cancel_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now, onupdate=_now,
    )

    @property
    def payment_status(self) -> str:
        return self.payment.get("status", "pending")

    def to_dict(self) -> dict:
        return {
            "orderId": self.order_id,
            "userId": str(self.user_id),
            "items": list(self.items or []),
            "address": dict(self.address or {}),
            "payment": dict(self.payment or {}),
            "orderStatus": self.order_status,
            "subtotal": float(self.subtotal),
            "shipping": float(self.shipping),
            "tax": float(self.tax),
            "total": float(self.total),
            "cancelReason": self.cancel_reason,
            "cancelledAt": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
