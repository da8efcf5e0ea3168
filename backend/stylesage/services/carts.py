"""Carts — user and guest carts, adoption and guest-to-user migration.

Invariants:
    - A user has at most one cart (user_id); a guest has at most one per session id
    - A guest cart found while the user has none is adopted: user_id set, session_id cleared
    - Migration merges by item key (core/cart_merge.py) and deletes the session cart
    - items is reassigned on every change, never mutated in place
"""

import logging
import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.core.cart_merge import merge_items, total_items
from stylesage.core.errors import AuthenticationError, ValidationFailedError
from stylesage.models.cart import Cart

logger = logging.getLogger(__name__)


def cart_payload(items: list[dict] | None) -> dict:
    items = list(items or [])
    return {"items": items, "totalItems": total_items(items)}


class CartService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _user_cart(self, user_id: uuid.UUID) -> Cart | None:
        result = await self.db.execute(select(Cart).where(Cart.user_id == user_id))
        return result.scalars().first()

    async def _session_cart(self, session_id: str | None) -> Cart | None:
        if not session_id:
            return None
        result = await self.db.execute(
            select(Cart).where(Cart.session_id == session_id, Cart.user_id.is_(None)),
        )
        return result.scalars().first()

    async def _resolve(
        self, user_id: uuid.UUID | None, session_id: str | None,
    ) -> Cart | None:
        if user_id:
            cart = await self._user_cart(user_id)
            if cart is None:
                cart = await self._session_cart(session_id)
                if cart is not None:
                    cart.user_id = user_id
                    cart.session_id = None
                    await self.db.commit()
            return cart
        return await self._session_cart(session_id)

    async def get_cart(self, user_id: uuid.UUID | None, session_id: str | None) -> dict:
        cart = await self._resolve(user_id, session_id)
        return cart_payload(cart.items if cart else [])

    async def get_user_items(self, user_id: uuid.UUID) -> list[dict]:
        cart = await self._user_cart(user_id)
        return list(cart.items) if cart else []

    async def put_cart(
        self, user_id: uuid.UUID | None, session_id: str | None, items: list[dict],
    ) -> dict:
        if user_id:
            cart = await self._user_cart(user_id)
            if cart is None:
                cart = Cart(user_id=user_id, items=[])
                self.db.add(cart)
            if not cart.items:
                session_cart = await self._session_cart(session_id)
                if session_cart is not None:
                    cart.items = list(session_cart.items)
                    await self.db.delete(session_cart)
        elif session_id:
            cart = await self._session_cart(session_id)
            if cart is None:
                cart = Cart(session_id=session_id, items=[])
                self.db.add(cart)
        else:
            raise ValidationFailedError("No session ID provided", "sessionId")

        cart.items = [dict(item) for item in items]
        await self.db.commit()
        return cart_payload(cart.items)

    async def clear_cart(self, user_id: uuid.UUID | None, session_id: str | None) -> dict:
        cart = await self._resolve(user_id, session_id)
        if cart is not None:
            cart.items = []
            await self.db.commit()
        return cart_payload([])

    async def clear_user_cart(self, user_id: uuid.UUID) -> None:
        """Empty the user's cart without committing (caller owns the transaction)."""
        cart = await self._user_cart(user_id)
        if cart is not None:
            cart.items = []

    async def migrate_cart(self, user_id: uuid.UUID | None, session_id: str | None) -> dict:
        if not user_id:
            raise AuthenticationError("No authentication token")
        user_cart = await self._user_cart(user_id)
        session_cart = await self._session_cart(session_id)

        if session_cart is not None and session_cart.items:
            if user_cart is not None:
                user_cart.items = merge_items(user_cart.items, session_cart.items)
                await self.db.execute(delete(Cart).where(Cart.id == session_cart.id))
            else:
                session_cart.user_id = user_id
                session_cart.session_id = None
                user_cart = session_cart
        elif user_cart is None:
            user_cart = Cart(user_id=user_id, items=[])
            self.db.add(user_cart)

        await self.db.commit()
        logger.info("Cart migrated", extra={"user_id": str(user_id)})
        return cart_payload(user_cart.items)
