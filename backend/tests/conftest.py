"""Root conftest — shared test configuration."""

import os

import pytest

# Settings are cached on first import: environment must be set before that
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp-test-secret")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("APP_URL", "https://stylesage.test")


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    """12 bcrypt rounds per hash would dominate the suite runtime."""
    monkeypatch.setattr("stylesage.infrastructure.security.BCRYPT_ROUNDS", 4)
