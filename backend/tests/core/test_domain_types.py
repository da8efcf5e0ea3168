"""Tests for domain enums — string values match what the DB stores."""

from stylesage.core.domain_types import (
    DEFAULT_SIZES, AuthProvider, OrderStatus, PaymentStatus, UserRole,
)


def test_enums_compare_equal_to_stored_strings():
    assert OrderStatus("placed") == "placed"
    assert PaymentStatus.COMPLETED.value == "completed"
    assert UserRole.ADMIN == "admin"
    assert AuthProvider.GOOGLE.value == "google"


def test_order_status_covers_full_lifecycle():
    assert [s.value for s in OrderStatus] == [
        "placed", "confirmed", "shipped", "delivered", "cancelled",
    ]


def test_default_sizes():
    assert DEFAULT_SIZES == ("S", "M", "L", "XL")
