"""Tests for checkout, payment verification and cancellation — stock moves end to end."""

from sqlalchemy import select

from stylesage.config import get_settings
from stylesage.core.signatures import payment_signature
from stylesage.models.cart import Cart
from stylesage.models.order import Order
from stylesage.models.product import StockLevel
from tests.services.fakes import login_as, stock_of

ADDRESS = {
    "fullName": "Asha Rao",
    "addressLine1": "12 MG Road",
    "city": "Bengaluru",
    "state": "KA",
    "pinCode": "560001",
    "phone": "9876543210",
}


def _cart_item(product, size="M", quantity=2):
    return {
        "productId": str(product.id), "name": product.name, "price": 1,
        "image": "", "color": "Black", "size": size, "quantity": quantity,
        "category": product.category,
    }


async def _checkout(client, product, quantity=2):
    await client.post("/api/cart", json={"items": [_cart_item(product, quantity=quantity)]})
    return await client.post("/api/checkout", json={"address": ADDRESS})


async def _verify(client, order_id, gateway_order_id, payment_id="pay_1", signature=None):
    secret = get_settings().razorpay_key_secret
    return await client.post("/api/checkout/verify", json={
        "razorpay_order_id": gateway_order_id,
        "razorpay_payment_id": payment_id,
        "razorpay_signature": signature or payment_signature(secret, gateway_order_id, payment_id),
        "orderId": order_id,
    })


async def _order_row(fresh_db, order_id) -> Order:
    async with fresh_db() as s:
        return (await s.execute(select(Order).where(Order.order_id == order_id))).scalar_one()


# ─── Checkout ────────────────────────────────────────────────────

async def test_checkout_prices_from_catalog_and_creates_gateway_order(
    client, shopper, make_product, gateway,
):
    product = await make_product(price="499")
    resp = await _checkout(client, product)

    assert resp.status_code == 201
    body = resp.json()
    order = body["order"]
    assert order["orderId"].startswith("ORD-")
    assert order["orderStatus"] == "placed"
    assert order["items"][0]["price"] == 499.0
    assert order["items"][0]["stockDeducted"] is False
    assert order["subtotal"] == 998.0
    assert order["shipping"] == 746.0
    assert order["tax"] == 79.84
    assert order["total"] == 1823.84
    assert order["payment"]["status"] == "pending"
    assert order["address"]["pinCode"] == "560001"

    assert body["checkout"] == {
        "keyId": "rzp_test_key",
        "gatewayOrderId": "order_1",
        "amount": 182384,
        "currency": "INR",
        "orderId": order["orderId"],
    }
    assert gateway.calls == [
        {"amount": 182384, "currency": "INR", "receipt": order["orderId"]},
    ]


async def test_checkout_does_not_touch_stock(client, shopper, make_product, fresh_db):
    product = await make_product(stock={"M": 5})
    await _checkout(client, product)
    assert await stock_of(fresh_db, product.id, "M") == 5


async def test_checkout_requires_login(client):
    resp = await client.post("/api/checkout", json={"address": ADDRESS})
    assert resp.status_code == 401


async def test_checkout_empty_cart(client, shopper):
    resp = await client.post("/api/checkout", json={"address": ADDRESS})
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Cart is empty"


async def test_checkout_rejects_incomplete_address(client, shopper, make_product):
    product = await make_product()
    await client.post("/api/cart", json={"items": [_cart_item(product)]})
    resp = await client.post("/api/checkout", json={"address": {"fullName": "A"}})
    assert resp.status_code == 400


async def test_checkout_out_of_stock_is_conflict(client, shopper, make_product, gateway):
    product = await make_product(stock={"M": 1})
    resp = await _checkout(client, product, quantity=3)

    assert resp.status_code == 409
    details = resp.json()["error"]["details"]
    assert details["outOfStockItems"] == [{
        "productId": str(product.id), "size": "M",
        "requestedQty": 3, "availableQty": 1,
    }]
    assert gateway.calls == []


async def test_checkout_inactive_product(client, shopper, make_product):
    product = await make_product(is_active=False)
    resp = await _checkout(client, product)
    assert resp.status_code == 400


# ─── Verification ────────────────────────────────────────────────

async def test_verify_confirms_order_reduces_stock_and_clears_cart(
    client, shopper, make_product, fresh_db,
):
    product = await make_product(stock={"M": 5})
    order_id = (await _checkout(client, product)).json()["order"]["orderId"]

    resp = await _verify(client, order_id, "order_1")
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "Payment verified successfully",
        "stockReduced": True,
        "stockErrors": [],
    }
    assert await stock_of(fresh_db, product.id, "M") == 3

    order = await _order_row(fresh_db, order_id)
    assert order.order_status == "confirmed"
    assert order.payment["status"] == "completed"
    assert order.payment["gatewayPaymentId"] == "pay_1"
    assert order.items[0]["stockDeducted"] is True

    async with fresh_db() as s:
        cart = (await s.execute(select(Cart).where(Cart.user_id == shopper.id))).scalar_one()
    assert cart.items == []


async def test_verify_twice_is_idempotent(client, shopper, make_product, fresh_db):
    product = await make_product(stock={"M": 5})
    order_id = (await _checkout(client, product)).json()["order"]["orderId"]
    await _verify(client, order_id, "order_1")

    again = await _verify(client, order_id, "order_1")
    assert again.status_code == 200
    assert again.json()["message"] == "Payment already verified"
    assert await stock_of(fresh_db, product.id, "M") == 3


async def test_verify_bad_signature_marks_payment_failed(
    client, shopper, make_product, fresh_db,
):
    product = await make_product(stock={"M": 5})
    order_id = (await _checkout(client, product)).json()["order"]["orderId"]

    resp = await _verify(client, order_id, "order_1", signature="0" * 64)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "PAYMENT_VERIFICATION_FAILED"

    order = await _order_row(fresh_db, order_id)
    assert order.payment["status"] == "failed"
    assert order.order_status == "placed"
    assert await stock_of(fresh_db, product.id, "M") == 5


async def test_verify_rejects_signature_for_another_gateway_order(
    client, shopper, make_product,
):
    product = await make_product()
    order_id = (await _checkout(client, product)).json()["order"]["orderId"]
    resp = await _verify(client, order_id, "order_999")
    assert resp.status_code == 400


async def test_verify_unknown_order(client, shopper):
    resp = await _verify(client, "ORD-NOPE-0000", "order_1")
    assert resp.status_code == 404


async def test_verify_someone_elses_order_is_forbidden(
    client, shopper, make_user, make_product,
):
    product = await make_product()
    order_id = (await _checkout(client, product)).json()["order"]["orderId"]
    login_as(client, await make_user(email="other@example.com"))
    resp = await _verify(client, order_id, "order_1")
    assert resp.status_code == 403


async def test_verify_cancelled_order_keeps_payment_for_refund(
    client, shopper, make_product, fresh_db,
):
    product = await make_product(stock={"M": 5})
    order_id = (await _checkout(client, product)).json()["order"]["orderId"]
    await client.post("/api/orders/cancel", json={"orderId": order_id})

    resp = await _verify(client, order_id, "order_1")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INVALID_ORDER_STATE"

    order = await _order_row(fresh_db, order_id)
    assert order.order_status == "cancelled"
    assert order.payment["status"] == "completed"
    assert order.payment["gatewayPaymentId"] == "pay_1"
    assert await stock_of(fresh_db, product.id, "M") == 5


async def test_second_confirmation_cannot_oversell(client, shopper, make_product, fresh_db):
    product = await make_product(stock={"M": 2})
    first = (await _checkout(client, product)).json()["order"]["orderId"]
    second = (await _checkout(client, product)).json()["order"]["orderId"]

    assert (await _verify(client, first, "order_1")).json()["stockReduced"] is True
    late = (await _verify(client, second, "order_2")).json()
    assert late["success"] is True
    assert late["stockReduced"] is False
    assert late["stockErrors"] == [
        f"Insufficient stock for product {product.id}, size M",
    ]
    assert await stock_of(fresh_db, product.id, "M") == 0

    order = await _order_row(fresh_db, second)
    assert order.order_status == "confirmed"
    assert order.items[0]["stockDeducted"] is False

    # cancelling the order whose stock was never taken gives nothing back
    cancel = (await client.post("/api/orders/cancel", json={"orderId": second})).json()
    assert cancel["success"] is True
    assert await stock_of(fresh_db, product.id, "M") == 0


# ─── Cancellation ────────────────────────────────────────────────

async def test_cancel_paid_order_restores_stock(client, shopper, make_product, fresh_db):
    product = await make_product(stock={"M": 5})
    order_id = (await _checkout(client, product)).json()["order"]["orderId"]
    await _verify(client, order_id, "order_1")

    resp = await client.post(
        "/api/orders/cancel", json={"orderId": order_id, "reason": "Wrong size"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Order cancelled successfully"
    assert body["stockRestored"] is True
    assert body["order"]["orderStatus"] == "cancelled"
    assert body["order"]["cancelReason"] == "Wrong size"
    assert body["order"]["cancelledAt"] is not None
    assert body["order"]["items"][0]["stockDeducted"] is False
    assert await stock_of(fresh_db, product.id, "M") == 5


async def test_cancel_unpaid_order_leaves_stock(client, shopper, make_product, fresh_db):
    product = await make_product(stock={"M": 5})
    order_id = (await _checkout(client, product)).json()["order"]["orderId"]

    body = (await client.post("/api/orders/cancel", json={"orderId": order_id})).json()
    assert body["stockRestored"] is False
    assert body["order"]["cancelReason"] == "Customer requested cancellation"
    assert await stock_of(fresh_db, product.id, "M") == 5


async def test_cancel_twice_is_rejected(client, shopper, make_product):
    product = await make_product()
    order_id = (await _checkout(client, product)).json()["order"]["orderId"]
    await client.post("/api/orders/cancel", json={"orderId": order_id})

    resp = await client.post("/api/orders/cancel", json={"orderId": order_id})
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Order is already cancelled"


async def test_cancel_requires_order_id(client, shopper):
    resp = await client.post("/api/orders/cancel", json={})
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Order ID is required"


async def test_cancel_someone_elses_order_is_forbidden(
    client, shopper, make_user, make_product,
):
    product = await make_product()
    order_id = (await _checkout(client, product)).json()["order"]["orderId"]
    login_as(client, await make_user(email="other@example.com"))
    resp = await client.post("/api/orders/cancel", json={"orderId": order_id})
    assert resp.status_code == 403


async def test_restock_recreates_deleted_size_row(client, shopper, make_product, fresh_db):
    product = await make_product(stock={"M": 2})
    order_id = (await _checkout(client, product)).json()["order"]["orderId"]
    await _verify(client, order_id, "order_1")

    async with fresh_db() as s:
        level = (await s.execute(
            select(StockLevel).where(StockLevel.product_id == product.id),
        )).scalar_one()
        await s.delete(level)
        await s.commit()

    await client.post("/api/orders/cancel", json={"orderId": order_id})
    assert await stock_of(fresh_db, product.id, "M") == 2


# ─── Order reads ─────────────────────────────────────────────────

async def test_list_and_get_own_orders(client, shopper, make_product):
    product = await make_product()
    order_id = (await _checkout(client, product)).json()["order"]["orderId"]

    listed = (await client.get("/api/orders")).json()
    assert listed["success"] is True
    assert [o["orderId"] for o in listed["orders"]] == [order_id]

    one = await client.get(f"/api/orders/{order_id}")
    assert one.status_code == 200
    assert one.json()["order"]["userId"] == str(shopper.id)


async def test_admin_can_read_any_order(client, shopper, make_user, make_product):
    product = await make_product()
    order_id = (await _checkout(client, product)).json()["order"]["orderId"]
    login_as(client, await make_user(email="admin@stylesage.com", role="admin"))
    assert (await client.get(f"/api/orders/{order_id}")).status_code == 200


async def test_other_user_cannot_read_order(client, shopper, make_user, make_product):
    product = await make_product()
    order_id = (await _checkout(client, product)).json()["order"]["orderId"]
    login_as(client, await make_user(email="other@example.com"))
    assert (await client.get(f"/api/orders/{order_id}")).status_code == 403
    assert (await client.get("/api/orders")).json()["orders"] == []


async def test_orders_require_login(client):
    assert (await client.get("/api/orders")).status_code == 401
