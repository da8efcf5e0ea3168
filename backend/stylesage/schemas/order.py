"""Order Schemas — checkout, payment verification, cancellation and admin status payloads.

Invariants:
    - Address requires fullName, addressLine1, city, state, pinCode, phone
    - Verification fields keep the gateway's own names (razorpay_*)
"""

from pydantic import BaseModel, ConfigDict, Field

from stylesage.core.domain_types import OrderStatus
from stylesage.schemas._base import CamelModel


class Address(CamelModel):
    full_name: str = Field(min_length=1, max_length=200)
    address_line1: str = Field(min_length=1, max_length=300)
    address_line2: str | None = Field(None, max_length=300)
    city: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=100)
    pin_code: str = Field(min_length=3, max_length=12)
    phone: str = Field(min_length=7, max_length=20)


class CheckoutRequest(CamelModel):
    address: Address


class VerifyPaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    razorpay_order_id: str = Field(min_length=1)
    razorpay_payment_id: str = Field(min_length=1)
    razorpay_signature: str = Field(min_length=1)
    order_id: str = Field(min_length=1, alias="orderId")


class CancelOrderRequest(CamelModel):
    order_id: str | None = None
    reason: str | None = Field(None, max_length=500)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class ExpireOrdersRequest(CamelModel):
    older_than_minutes: int = Field(60, ge=1, le=7 * 24 * 60)
