"""Test doubles for external clients plus small auth/stock helpers.

FakeGateway and FakeImageHost mirror the async surface of
ResilientRazorpayClient and CloudinaryImageHost; FakeGoogleOAuth mirrors
GoogleOAuthClient.
"""

from pathlib import PurePath

from httpx import AsyncClient
from sqlalchemy import select

from stylesage.config import get_settings
from stylesage.core.errors import OAuthError
from stylesage.infrastructure import security
from stylesage.models.product import StockLevel
from stylesage.models.user import User


class FakeGateway:
    """Hands out sequential gateway order ids."""

    def __init__(self):
        self.calls: list[dict] = []

    async def create_order(self, *, amount, currency, receipt, notes=None, context=None):
        self.calls.append({"amount": amount, "currency": currency, "receipt": receipt})
        return {
            "id": f"order_{len(self.calls)}",
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "status": "created",
        }


class FakeImageHost:
    """Records uploads and deletions."""

    def __init__(self):
        self.uploaded: list[str] = []
        self.deleted: list[str] = []

    async def upload_image(self, data: bytes, filename: str | None = None) -> str:
        stem = PurePath(filename or f"image{len(self.uploaded)}").stem
        url = f"https://res.cloudinary.com/demo/image/upload/v1/tshirt-products/{stem}.jpg"
        self.uploaded.append(url)
        return url

    async def delete_image(self, public_id: str) -> bool:
        self.deleted.append(public_id)
        return True


class FakeGoogleOAuth:
    def __init__(self, profile: dict | None = None, fail: bool = False):
        self.profile = profile or {
            "id": "google-123", "email": "Fan@Example.com",
            "name": "Anime Fan", "picture": "https://example.com/p.png",
        }
        self.fail = fail

    def authorize_url(self, state: str) -> str:
        return f"https://accounts.google.com/o/oauth2/v2/auth?state={state}"

    async def exchange_code(self, code: str) -> dict:
        if self.fail:
            raise OAuthError("Failed to exchange code for tokens")
        return {"access_token": f"access-{code}"}

    async def get_user_info(self, access_token: str) -> dict:
        return dict(self.profile)


def login_as(client: AsyncClient, user: User) -> None:
    """Replace the client's cookies with a valid auth cookie for user."""
    s = get_settings()
    token = security.create_token(
        security.TokenClaims(user_id=str(user.id), email=user.email, role=user.role),
        s.jwt_secret,
        s.jwt_expiry_days,
    )
    client.cookies.clear()
    client.cookies.set(s.auth_cookie_name, token)


async def stock_of(session_factory, product_id, size) -> int | None:
    """Committed quantity for one (product, size), None when the row is missing."""
    async with session_factory() as s:
        return (await s.execute(
            select(StockLevel.quantity).where(
                StockLevel.product_id == product_id, StockLevel.size == size,
            ),
        )).scalar_one_or_none()
