"""Cart Routes — read, replace, clear and migrate the caller's cart.

Invariants:
    - The user comes from the auth cookie; a bad token means guest
    - Guests address their cart by sessionId (query for GET/DELETE, body for POST)
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.api.dependencies import get_optional_user
from stylesage.infrastructure.database import get_db
from stylesage.models.user import User
from stylesage.schemas.cart import CartMigrate, CartUpdate
from stylesage.services.carts import CartService

router = APIRouter(prefix="/api/cart", tags=["cart"])


def _uid(user: User | None):
    return user.id if user else None


@router.get("")
async def get_cart(
    session_id: str | None = Query(None, alias="sessionId"),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    return await CartService(db).get_cart(_uid(user), session_id)


@router.post("")
async def put_cart(
    body: CartUpdate,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    result = await CartService(db).put_cart(
        _uid(user), body.session_id, [item.to_document() for item in body.items],
    )
    return {"success": True, **result}


@router.delete("")
async def clear_cart(
    session_id: str | None = Query(None, alias="sessionId"),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    result = await CartService(db).clear_cart(_uid(user), session_id)
    return {"success": True, **result}


@router.post("/migrate")
async def migrate_cart(
    body: CartMigrate,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    result = await CartService(db).migrate_cart(_uid(user), body.session_id)
    return {"success": True, **result}
