"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - str Enums: serialize to JSON without custom encoders and compare equal
      to the raw strings stored in the DB
"""

from enum import Enum


class OrderStatus(str, Enum):
    """Order lifecycle states — maps to DB `order_status` column."""
    PLACED = "placed"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Gateway payment states — maps to `payment.status` in the order document."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class AuthProvider(str, Enum):
    """How the account authenticates — email accounts must carry a password hash."""
    EMAIL = "email"
    GOOGLE = "google"


class ChangeFrequency(str, Enum):
    """Sitemap <changefreq> values."""
    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"


DEFAULT_SIZES: tuple[str, ...] = ("S", "M", "L", "XL")
IMAGE_FOLDER = "tshirt-products"
