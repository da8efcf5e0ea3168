"""Checkout Routes — place an order from the cart and verify the gateway payment."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.api.dependencies import get_current_user, get_payment_gateway
from stylesage.config import Settings, get_settings
from stylesage.infrastructure.database import get_db
from stylesage.models.user import User
from stylesage.schemas.order import CheckoutRequest, VerifyPaymentRequest
from stylesage.services.orders import OrderService

router = APIRouter(prefix="/api/checkout", tags=["checkout"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def place_order(
    body: CheckoutRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    gateway=Depends(get_payment_gateway),
):
    result = await OrderService(db, settings, gateway).place_order(
        user, body.address.model_dump(by_alias=True),
    )
    return {"success": True, **result}


@router.post("/verify")
async def verify_payment(
    body: VerifyPaymentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return await OrderService(db, settings).verify_payment(
        user,
        order_id=body.order_id,
        gateway_order_id=body.razorpay_order_id,
        gateway_payment_id=body.razorpay_payment_id,
        signature=body.razorpay_signature,
    )
