"""Cart ORM — one cart document per user or per anonymous session.

Invariants:
    - Exactly one of user_id / session_id is set on a live cart
    - items is a JSON array of CartItem dicts (productId, name, price, image,
      color, size, quantity, category) validated by schemas/cart.py
    - items is always reassigned, never mutated in place (JSON change tracking)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from stylesage.db.base import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Cart(Base):
    __tablename__ = "carts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True, index=True,
    )
    session_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True, index=True,
    )
    items: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now, onupdate=_now,
    )
