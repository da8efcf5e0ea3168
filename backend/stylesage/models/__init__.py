"""ORM Models — SQLAlchemy declarative models for all storefront entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Nested document parts (cart items, order items, address, payment) are JSON columns

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from stylesage.models.user import User  # noqa: F401
from stylesage.models.category import Category  # noqa: F401
from stylesage.models.product import Product, StockLevel  # noqa: F401
from stylesage.models.cart import Cart  # noqa: F401
from stylesage.models.order import Order  # noqa: F401
