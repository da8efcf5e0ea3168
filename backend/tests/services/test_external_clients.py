"""Tests for the Razorpay, Google OAuth and Cloudinary client wrappers and JWT helpers."""

import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from cloudinary.exceptions import Error as CloudinarySDKError

from stylesage.core.errors import ImageHostError, OAuthError, PaymentGatewayError
from stylesage.infrastructure import security
from stylesage.infrastructure.cloudinary_client import CloudinaryImageHost
from stylesage.infrastructure.google_oauth import GoogleOAuthClient
from stylesage.infrastructure.razorpay_client import ResilientRazorpayClient


def _razorpay(handler, max_retries=2):
    return ResilientRazorpayClient(
        "rzp_test_key", "secret",
        max_retries=max_retries, base_delay_ms=0, max_delay_ms=0,
        transport=httpx.MockTransport(handler),
    )


# ─── Razorpay ────────────────────────────────────────────────────

async def test_create_order_posts_amount_with_basic_auth():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "order_abc", "amount": 182384})

    result = await _razorpay(handler).create_order(
        amount=182384, currency="INR", receipt="ORD-1",
    )
    assert result["id"] == "order_abc"
    assert seen["url"] == "https://api.razorpay.com/v1/orders"
    assert seen["auth"].startswith("Basic ")
    assert seen["body"] == {
        "amount": 182384, "currency": "INR", "receipt": "ORD-1", "notes": {},
    }


async def test_server_errors_are_retried():
    attempts = []

    def handler(request):
        attempts.append(1)
        if len(attempts) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"id": "order_ok"})

    result = await _razorpay(handler).create_order(amount=100, currency="INR", receipt="r")
    assert result["id"] == "order_ok"
    assert len(attempts) == 3


async def test_retries_exhausted():
    def handler(request):
        raise httpx.ConnectError("refused")

    with pytest.raises(PaymentGatewayError) as exc:
        await _razorpay(handler, max_retries=1).create_order(
            amount=100, currency="INR", receipt="r",
        )
    assert exc.value.api_error_type == "connection_error"


async def test_client_errors_fail_fast():
    attempts = []

    def handler(request):
        attempts.append(1)
        return httpx.Response(
            400, json={"error": {"description": "amount must be at least INR 1.00"}},
        )

    with pytest.raises(PaymentGatewayError) as exc:
        await _razorpay(handler).create_order(amount=0, currency="INR", receipt="r")
    assert exc.value.api_error_type == "client_error"
    assert "amount must be at least" in exc.value.message
    assert len(attempts) == 1


async def test_rate_limit_reports_retry_after():
    def handler(request):
        return httpx.Response(429, headers={"retry-after": "0"})

    with pytest.raises(PaymentGatewayError) as exc:
        await _razorpay(handler, max_retries=0).create_order(
            amount=100, currency="INR", receipt="r",
        )
    assert exc.value.api_error_type == "rate_limit"


def test_backoff_is_capped_with_jitter():
    client = ResilientRazorpayClient("k", "s", base_delay_ms=500, max_delay_ms=2_000)
    for attempt in range(6):
        delay = client._backoff(attempt)
        assert 0 < delay <= 2_500


# ─── Google OAuth ────────────────────────────────────────────────

def test_authorize_url_carries_state_and_scope():
    url = GoogleOAuthClient("cid", "secret", "https://api.test/cb").authorize_url("xyz")
    assert url.startswith("https://accounts.google.com/o/oauth2/v2/auth?")
    assert "state=xyz" in url
    assert "scope=openid+email+profile" in url


async def test_exchange_and_userinfo():
    def handler(request):
        if request.url.path == "/token":
            assert b"grant_type=authorization_code" in request.content
            return httpx.Response(200, json={"access_token": "at"})
        assert request.headers["authorization"] == "Bearer at"
        return httpx.Response(200, json={"id": "1", "email": "a@b.com"})

    oauth = GoogleOAuthClient(
        "cid", "secret", "https://api.test/cb", transport=httpx.MockTransport(handler),
    )
    tokens = await oauth.exchange_code("code")
    assert (await oauth.get_user_info(tokens["access_token"]))["email"] == "a@b.com"


async def test_google_rejection_maps_to_oauth_error():
    oauth = GoogleOAuthClient(
        "cid", "secret", "https://api.test/cb",
        transport=httpx.MockTransport(lambda request: httpx.Response(400)),
    )
    with pytest.raises(OAuthError):
        await oauth.exchange_code("bad")


# ─── Cloudinary ──────────────────────────────────────────────────

async def test_upload_returns_secure_url(monkeypatch):
    calls = {}

    def fake_upload(data, **options):
        calls.update(options)
        return {"secure_url": "https://res.cloudinary.com/x/image/upload/v1/f/a.jpg"}

    monkeypatch.setattr("cloudinary.uploader.upload", fake_upload)
    host = CloudinaryImageHost("cloud", "key", "secret", folder="tshirt-products")
    url = await host.upload_image(b"img", "a.png")

    assert url == "https://res.cloudinary.com/x/image/upload/v1/f/a.jpg"
    assert calls["folder"] == "tshirt-products"
    assert calls["transformation"][0] == {"width": 800, "height": 800, "crop": "limit"}


async def test_upload_failure_maps_to_image_host_error(monkeypatch):
    def fake_upload(data, **options):
        raise CloudinarySDKError("Invalid image file")

    monkeypatch.setattr("cloudinary.uploader.upload", fake_upload)
    with pytest.raises(ImageHostError):
        await CloudinaryImageHost("c", "k", "s").upload_image(b"img")


async def test_delete_reports_ok(monkeypatch):
    monkeypatch.setattr(
        "cloudinary.uploader.destroy", lambda public_id, **options: {"result": "ok"},
    )
    assert await CloudinaryImageHost("c", "k", "s").delete_image("f/a") is True


# ─── Tokens & passwords ──────────────────────────────────────────

def test_token_round_trip():
    claims = security.TokenClaims(user_id="u1", email="a@b.com", role="user")
    token = security.create_token(claims, "secret")
    assert security.decode_token(token, "secret") == claims
    assert security.decode_token(token, "other-secret") is None


def test_expired_token_is_rejected():
    claims = security.TokenClaims(user_id="u1", email="a@b.com", role="user")
    issued = datetime.now(timezone.utc) - timedelta(days=8)
    token = security.create_token(claims, "secret", expiry_days=7, now=issued)
    assert security.decode_token(token, "secret") is None


def test_password_hashing():
    hashed = security.hash_password("secret123")
    assert security.verify_password("secret123", hashed)
    assert not security.verify_password("wrong", hashed)
    assert not security.verify_password("secret123", None)
    assert not security.verify_password("secret123", "not-a-bcrypt-hash")
