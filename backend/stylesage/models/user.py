"""User ORM — storefront accounts (email/password or Google).

Invariants:
    - email unique and stored lowercase
    - password_hash present iff provider == "email"
    - role in {user, admin}; Google accounts are email-verified on creation

Design Decisions:
    - google_id unique but nullable: email accounts never carry one
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from stylesage.db.base import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(320), nullable=False, unique=True, index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(100), nullable=True)
    picture: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    role: Mapped[str] = mapped_column(String(10), nullable=False, default="user")
    provider: Mapped[str] = mapped_column(String(10), nullable=False)
    google_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True, unique=True,
    )
    is_email_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now,
    )
    last_login_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_now,
    )

    def to_public(self) -> dict:
        return {
            "id": str(self.id),
            "email": self.email,
            "name": self.name,
            "picture": self.picture,
            "role": self.role,
        }
