"""Order Lifecycle — allowed status transitions and cancellation rules.

Invariants:
    - Forward path: placed → confirmed → shipped → delivered
    - cancelled is reachable only from placed or confirmed
    - Stock is restored on cancel only when payment completed AND order confirmed
    - Order references are "ORD-<base36 millis>-<4 base36 chars>", uppercase

Design Decisions:
    - Transition table as a dict: one lookup, no status string comparisons scattered in services
    - Clock and randomness passed in by the caller (pure, testable)
"""

from stylesage.core.domain_types import OrderStatus, PaymentStatus
from stylesage.core.errors import InvalidOrderStateError

_FORWARD: dict[OrderStatus, OrderStatus] = {
    OrderStatus.PLACED: OrderStatus.CONFIRMED,
    OrderStatus.CONFIRMED: OrderStatus.SHIPPED,
    OrderStatus.SHIPPED: OrderStatus.DELIVERED,
}

_CANCELLABLE = frozenset({OrderStatus.PLACED, OrderStatus.CONFIRMED})

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

DEFAULT_CANCEL_REASON = "Customer requested cancellation"
EXPIRED_CANCEL_REASON = "Payment not completed"


def check_transition(current: OrderStatus, target: OrderStatus) -> None:
    """Raise InvalidOrderStateError unless current → target is a forward step."""
    if target == OrderStatus.CANCELLED:
        raise InvalidOrderStateError("Use order cancellation to cancel an order")
    if _FORWARD.get(current) != target:
        raise InvalidOrderStateError(
            f"Cannot move order from '{current.value}' to '{target.value}'",
        )


def check_cancellable(current: OrderStatus) -> None:
    if current == OrderStatus.CANCELLED:
        raise InvalidOrderStateError("Order is already cancelled")
    if current not in _CANCELLABLE:
        raise InvalidOrderStateError(
            "Cannot cancel order that has been shipped or delivered",
        )


def should_restore_stock(status: OrderStatus, payment_status: PaymentStatus) -> bool:
    return (
        status == OrderStatus.CONFIRMED
        and payment_status == PaymentStatus.COMPLETED
    )


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def make_order_reference(now_ms: int, entropy: int) -> str:
    """Build a human readable order id from a millisecond clock and random int."""
    suffix = _to_base36(entropy % 36 ** 4).rjust(4, "0")
    return f"ORD-{_to_base36(now_ms)}-{suffix}"
