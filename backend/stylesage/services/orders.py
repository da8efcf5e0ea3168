"""Orders — checkout, payment verification, cancellation and admin lifecycle.

Invariants:
    - Order lines are priced from the products table, never from the client cart
    - Stock is checked at checkout (409 with outOfStockItems) and decremented
      only once the gateway signature verifies
    - Each order item records stockDeducted; cancellation restores exactly those lines
    - Stock restored only for confirmed orders whose payment completed
    - A second verification of a completed payment is a no-op success
    - Every status change is claimed with a guarded UPDATE on the observed status;
      only the claiming request moves stock
    - A valid payment for a cancelled order is recorded (completed) for refund,
      never applied
    - Status moves forward only (core/order_lifecycle.py); cancellation has its own path

Design Decisions:
    - Gateway order created before the DB row: a gateway failure leaves nothing
      to clean up; an abandoned gateway order is harmless
    - Stock errors at confirmation are reported (stockReduced/stockErrors), the
      order is still confirmed: the customer has already paid
"""

import logging
import secrets
import time
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.config import Settings
from stylesage.core.domain_types import OrderStatus, PaymentStatus, UserRole
from stylesage.core.errors import (
    ErrorContext, InsufficientStockError, InvalidOrderStateError,
    PaymentVerificationError, PermissionDeniedError, ResourceNotFoundError,
    ValidationFailedError,
)
from stylesage.core.order_lifecycle import (
    DEFAULT_CANCEL_REASON, EXPIRED_CANCEL_REASON, check_cancellable,
    check_transition, make_order_reference, should_restore_stock,
)
from stylesage.core.pricing import PriceLine, compute_totals
from stylesage.core.signatures import verify_payment_signature
from stylesage.core.stock import StockLine
from stylesage.models.order import Order
from stylesage.models.user import User
from stylesage.services.carts import CartService
from stylesage.services.catalog import CatalogService
from stylesage.services.inventory import InventoryService

logger = logging.getLogger(__name__)


def _lines(items: list[dict], only_deducted: bool = False) -> list[StockLine]:
    return [
        StockLine(str(item["productId"]), item["size"], int(item["quantity"]))
        for item in items
        if not only_deducted or item.get("stockDeducted")
    ]


class OrderService:
    def __init__(self, db: AsyncSession, settings: Settings, gateway=None):
        self.db = db
        self.settings = settings
        self.gateway = gateway
        self.inventory = InventoryService(db)
        self.carts = CartService(db)
        self.catalog = CatalogService(db)

    # ─── Lookup ───────────────────────────────────────────────────

    async def _find(self, order_id: str) -> Order:
        result = await self.db.execute(select(Order).where(Order.order_id == order_id))
        order = result.scalar_one_or_none()
        if order is None:
            raise ResourceNotFoundError("Order", order_id)
        return order

    def _check_access(self, order: Order, user: User) -> None:
        if order.user_id != user.id and user.role != UserRole.ADMIN.value:
            raise PermissionDeniedError(
                "You do not have access to this order",
                ErrorContext(order_id=order.order_id, user_id=str(user.id)),
            )

    async def get_order(self, user: User, order_id: str) -> Order:
        order = await self._find(order_id)
        self._check_access(order, user)
        return order

    async def list_orders(self, user: User) -> list[Order]:
        result = await self.db.execute(
            select(Order).where(Order.user_id == user.id)
            .order_by(Order.created_at.desc()),
        )
        return list(result.scalars().all())

    # ─── Checkout ─────────────────────────────────────────────────

    async def place_order(self, user: User, address: dict) -> dict:
        cart_items = await self.carts.get_user_items(user.id)
        if not cart_items:
            raise ValidationFailedError("Cart is empty", "items")

        lines = _lines(cart_items)
        check = await self.inventory.validate_stock(lines)
        if not check.valid:
            raise InsufficientStockError(
                check.out_of_stock_items, ErrorContext(user_id=str(user.id)),
            )

        products = await self.catalog.get_products_by_ids([line.product_id for line in lines])
        order_items, price_lines = [], []
        for item in cart_items:
            product = products.get(str(item["productId"]))
            if product is None or not product.is_active:
                raise ValidationFailedError(
                    f"Product {item.get('name') or item['productId']} is no longer available",
                    "items",
                )
            quantity = int(item["quantity"])
            price_lines.append(PriceLine(product.price, quantity))
            order_items.append({
                "productId": str(product.id),
                "title": product.name,
                "price": float(product.price),
                "quantity": quantity,
                "size": item["size"],
                "color": item.get("color", ""),
                "image": item.get("image") or (product.images[0] if product.images else ""),
                "stockDeducted": False,
            })

        totals = compute_totals(
            price_lines,
            shipping_flat=self.settings.shipping_flat,
            free_shipping_threshold=self.settings.free_shipping_threshold,
            tax_rate=self.settings.tax_rate,
        )
        reference = make_order_reference(
            int(time.time() * 1000), secrets.randbelow(36 ** 4),
        )
        context = ErrorContext(order_id=reference, user_id=str(user.id))
        gateway_order = await self.gateway.create_order(
            amount=totals.amount_minor,
            currency=self.settings.currency,
            receipt=reference,
            notes={"userId": str(user.id)},
            context=context,
        )

        order = Order(
            order_id=reference,
            user_id=user.id,
            items=order_items,
            address=dict(address),
            payment={
                "gatewayOrderId": gateway_order["id"],
                "gatewayPaymentId": None,
                "gatewaySignature": None,
                "amount": totals.amount_minor,
                "currency": self.settings.currency,
                "status": PaymentStatus.PENDING.value,
            },
            gateway_order_id=gateway_order["id"],
            order_status=OrderStatus.PLACED.value,
            subtotal=totals.subtotal,
            shipping=totals.shipping,
            tax=totals.tax,
            total=totals.total,
        )
        self.db.add(order)
        await self.db.commit()
        logger.info(
            "Order placed",
            extra={"order_id": reference, "gateway_order_id": gateway_order["id"]},
        )
        return {
            "order": order.to_dict(),
            "checkout": {
                "keyId": self.settings.razorpay_key_id,
                "gatewayOrderId": gateway_order["id"],
                "amount": totals.amount_minor,
                "currency": self.settings.currency,
                "orderId": reference,
            },
        }

    def _already_verified(self, order: Order, context: ErrorContext) -> dict:
        if order.order_status == OrderStatus.CANCELLED.value:
            raise InvalidOrderStateError("Order has been cancelled", context)
        return {
            "success": True,
            "message": "Payment already verified",
            "stockReduced": True,
            "stockErrors": [],
        }

    async def _claim(self, order: Order, current: OrderStatus, **values) -> bool:
        """Write values only while the order is still `current`; True when this call won."""
        result = await self.db.execute(
            update(Order)
            .where(Order.id == order.id, Order.order_status == current.value)
            .values(**values)
            .execution_options(synchronize_session=False),
        )
        return result.rowcount == 1

    async def _record_late_payment(
        self, order: Order, payment_id: str, signature: str,
    ) -> None:
        """Keep a captured payment on a cancelled order so it can be refunded."""
        await self.db.execute(
            update(Order)
            .where(
                Order.id == order.id,
                Order.order_status == OrderStatus.CANCELLED.value,
            )
            .values(payment={
                **order.payment,
                "gatewayPaymentId": payment_id,
                "gatewaySignature": signature,
                "status": PaymentStatus.COMPLETED.value,
            })
            .execution_options(synchronize_session=False),
        )
        await self.db.commit()
        logger.error(
            "Payment captured for a cancelled order, refund required",
            extra={"order_id": order.order_id, "error_code": "INVALID_ORDER_STATE"},
        )

    async def verify_payment(
        self,
        user: User,
        *,
        order_id: str,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> dict:
        order = await self._find(order_id)
        self._check_access(order, user)
        context = ErrorContext(order_id=order_id, user_id=str(user.id))

        if order.payment_status == PaymentStatus.COMPLETED.value:
            return self._already_verified(order, context)

        authentic = (
            gateway_order_id == order.gateway_order_id
            and verify_payment_signature(
                self.settings.razorpay_key_secret,
                gateway_order_id, gateway_payment_id, signature,
            )
        )
        if not authentic:
            await self._claim(
                order, OrderStatus.PLACED,
                payment={**order.payment, "status": PaymentStatus.FAILED.value},
            )
            await self.db.commit()
            logger.warning("Payment signature mismatch", extra={"order_id": order_id})
            raise PaymentVerificationError(context)

        if not await self._claim(
            order, OrderStatus.PLACED, order_status=OrderStatus.CONFIRMED.value,
        ):
            await self.db.rollback()
            await self.db.refresh(order)
            if order.payment_status == PaymentStatus.COMPLETED.value:
                return self._already_verified(order, context)
            await self._record_late_payment(order, gateway_payment_id, signature)
            raise InvalidOrderStateError("Order has been cancelled", context)

        change = await self.inventory.reduce_stock(_lines(order.items))
        deducted = set(change.applied)
        order.items = [
            {**item, "stockDeducted": (str(item["productId"]), item["size"]) in deducted}
            for item in order.items
        ]
        order.payment = {
            **order.payment,
            "gatewayPaymentId": gateway_payment_id,
            "gatewaySignature": signature,
            "status": PaymentStatus.COMPLETED.value,
        }
        order.order_status = OrderStatus.CONFIRMED.value
        await self.carts.clear_user_cart(order.user_id)
        await self.db.commit()

        if not change.success:
            logger.error(
                f"Stock reduction errors: {change.errors}", extra={"order_id": order_id},
            )
        logger.info("Payment verified", extra={"order_id": order_id})
        return {
            "success": True,
            "message": "Payment verified successfully",
            "stockReduced": change.success,
            "stockErrors": change.errors,
        }

    # ─── Cancellation ─────────────────────────────────────────────

    async def cancel_order(
        self, user: User, order_id: str | None, reason: str | None = None,
    ) -> dict:
        if not order_id:
            raise ValidationFailedError("Order ID is required", "orderId")
        order = await self._find(order_id)
        self._check_access(order, user)

        reason = reason or DEFAULT_CANCEL_REASON
        cancelled_at = datetime.now(timezone.utc)
        # statuses only move forward, so a lost claim is retried at most a few times
        while True:
            current = OrderStatus(order.order_status)
            check_cancellable(current)
            restore = should_restore_stock(current, PaymentStatus(order.payment_status))
            if await self._claim(
                order, current,
                order_status=OrderStatus.CANCELLED.value,
                cancel_reason=reason,
                cancelled_at=cancelled_at,
            ):
                break
            await self.db.rollback()
            await self.db.refresh(order)

        stock_restored, stock_errors = False, []
        if restore:
            change = await self.inventory.restore_stock(
                _lines(order.items, only_deducted=True),
            )
            restored = set(change.applied)
            order.items = [
                {
                    **item,
                    "stockDeducted": bool(item.get("stockDeducted"))
                    and (str(item["productId"]), item["size"]) not in restored,
                }
                for item in order.items
            ]
            stock_restored, stock_errors = change.success, change.errors
            if stock_errors:
                logger.error(
                    f"Stock restoration errors: {stock_errors}",
                    extra={"order_id": order_id},
                )

        order.order_status = OrderStatus.CANCELLED.value
        order.cancel_reason = reason
        order.cancelled_at = cancelled_at
        await self.db.commit()
        logger.info("Order cancelled", extra={"order_id": order_id})
        return {
            "success": True,
            "message": "Order cancelled successfully",
            "order": order.to_dict(),
            "stockRestored": stock_restored,
            "stockErrors": stock_errors,
        }

    # ─── Admin ────────────────────────────────────────────────────

    async def list_all_orders(
        self, status: OrderStatus | None = None, limit: int = 50, offset: int = 0,
    ) -> list[Order]:
        query = select(Order).order_by(Order.created_at.desc())
        if status is not None:
            query = query.where(Order.order_status == status.value)
        result = await self.db.execute(query.limit(limit).offset(offset))
        return list(result.scalars().all())

    async def update_order_status(self, order_id: str, target: OrderStatus) -> Order:
        order = await self._find(order_id)
        current = OrderStatus(order.order_status)
        check_transition(current, target)
        context = ErrorContext(order_id=order_id)
        if (
            target == OrderStatus.CONFIRMED
            and order.payment_status != PaymentStatus.COMPLETED.value
        ):
            raise InvalidOrderStateError("Order payment has not been completed", context)
        if not await self._claim(order, current, order_status=target.value):
            await self.db.rollback()
            raise InvalidOrderStateError("Order was changed by another request", context)
        order.order_status = target.value
        await self.db.commit()
        logger.info(f"Order moved to {target.value}", extra={"order_id": order_id})
        return order

    async def expire_stale_orders(
        self, older_than_minutes: int, now: datetime | None = None,
    ) -> list[str]:
        """Cancel placed orders whose payment never completed before the cutoff."""
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(minutes=older_than_minutes)
        result = await self.db.execute(
            select(Order).where(
                Order.order_status == OrderStatus.PLACED.value,
                Order.created_at < cutoff,
            ),
        )
        expired = []
        cancelled_at = datetime.now(timezone.utc)
        for order in result.scalars().all():
            if order.payment_status == PaymentStatus.COMPLETED.value:
                continue
            # an order confirmed since the select keeps its status
            if await self._claim(
                order, OrderStatus.PLACED,
                order_status=OrderStatus.CANCELLED.value,
                cancel_reason=EXPIRED_CANCEL_REASON,
                cancelled_at=cancelled_at,
            ):
                order.order_status = OrderStatus.CANCELLED.value
                order.cancel_reason = EXPIRED_CANCEL_REASON
                order.cancelled_at = cancelled_at
                expired.append(order.order_id)
        await self.db.commit()
        if expired:
            logger.info(f"Expired {len(expired)} unpaid orders")
        return expired
