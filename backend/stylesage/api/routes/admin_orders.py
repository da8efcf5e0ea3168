"""Admin Order Routes — list every order, advance status, expire unpaid orders."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.api.dependencies import require_admin
from stylesage.config import Settings, get_settings
from stylesage.core.domain_types import OrderStatus
from stylesage.infrastructure.database import get_db
from stylesage.models.user import User
from stylesage.schemas.order import ExpireOrdersRequest, OrderStatusUpdate
from stylesage.services.orders import OrderService

router = APIRouter(prefix="/api/admin/orders", tags=["admin-orders"])


@router.get("")
async def list_all_orders(
    status: OrderStatus | None = None,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    orders = await OrderService(db, settings).list_all_orders(status, limit, offset)
    return {"orders": [o.to_dict() for o in orders]}


@router.post("/expire")
async def expire_stale_orders(
    body: ExpireOrdersRequest,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    expired = await OrderService(db, settings).expire_stale_orders(body.older_than_minutes)
    return {"expired": expired, "count": len(expired)}


@router.patch("/{order_id}/status")
async def update_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    order = await OrderService(db, settings).update_order_status(order_id, body.status)
    return {"order": order.to_dict()}
