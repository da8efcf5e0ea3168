"""Order Routes — the caller's orders and cancellation.

Invariants:
    - /cancel registered before /{order_id}
    - Non-owners get 403 unless they are admins
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.api.dependencies import get_current_user
from stylesage.config import Settings, get_settings
from stylesage.infrastructure.database import get_db
from stylesage.models.user import User
from stylesage.schemas.order import CancelOrderRequest
from stylesage.services.orders import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("")
async def list_orders(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    orders = await OrderService(db, settings).list_orders(user)
    return {"success": True, "orders": [o.to_dict() for o in orders]}


@router.post("/cancel")
async def cancel_order(
    body: CancelOrderRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await OrderService(db, settings).cancel_order(
        user, body.order_id, body.reason,
    )


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    order = await OrderService(db, settings).get_order(user, order_id)
    return {"success": True, "order": order.to_dict()}
