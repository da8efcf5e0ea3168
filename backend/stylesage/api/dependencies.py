"""Request Dependencies — current user resolution, role guards and external clients.

Invariants:
    - The session token travels in the auth cookie only
    - get_optional_user never raises for a bad token: guests are allowed
    - get_current_user → 401, require_admin → 403
    - External clients come from provider functions so tests swap them via
      app.dependency_overrides
"""

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.config import Settings, get_settings
from stylesage.core.domain_types import UserRole
from stylesage.core.errors import AuthenticationError, PermissionDeniedError
from stylesage.infrastructure.cloudinary_client import CloudinaryImageHost
from stylesage.infrastructure.database import get_db
from stylesage.infrastructure.google_oauth import GoogleOAuthClient
from stylesage.infrastructure.razorpay_client import ResilientRazorpayClient
from stylesage.models.user import User
from stylesage.services.users import UserService


# ─── Auth cookie ─────────────────────────────────────────────────

def set_auth_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        settings.auth_cookie_name,
        token,
        max_age=settings.jwt_expiry_days * 24 * 60 * 60,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_auth_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.auth_cookie_name,
        path="/",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def set_oauth_state_cookie(response: Response, csrf: str, settings: Settings) -> None:
    response.set_cookie(
        settings.oauth_state_cookie_name,
        csrf,
        max_age=settings.oauth_state_max_age_seconds,
        path="/api/auth",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def clear_oauth_state_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.oauth_state_cookie_name,
        path="/api/auth",
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


# ─── Current user ────────────────────────────────────────────────

async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User | None:
    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        return None
    return await UserService(db, settings).user_from_token(token)


async def get_current_user(
    user: User | None = Depends(get_optional_user),
) -> User:
    if user is None:
        raise AuthenticationError()
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN.value:
        raise PermissionDeniedError()
    return user


# ─── External clients ────────────────────────────────────────────

def get_payment_gateway(
    settings: Settings = Depends(get_settings),
) -> ResilientRazorpayClient:
    return ResilientRazorpayClient(
        settings.razorpay_key_id,
        settings.razorpay_key_secret,
        base_url=settings.razorpay_base_url,
        max_retries=settings.razorpay_max_retries,
        base_delay_ms=settings.razorpay_base_delay_ms,
        max_delay_ms=settings.razorpay_max_delay_ms,
        timeout_seconds=settings.razorpay_timeout_seconds,
    )


def get_image_host(settings: Settings = Depends(get_settings)) -> CloudinaryImageHost:
    return CloudinaryImageHost(
        settings.cloudinary_cloud_name,
        settings.cloudinary_api_key,
        settings.cloudinary_api_secret,
        folder=settings.cloudinary_folder,
    )


def get_google_oauth(settings: Settings = Depends(get_settings)) -> GoogleOAuthClient:
    return GoogleOAuthClient(
        settings.google_client_id,
        settings.google_client_secret,
        settings.google_redirect_uri,
    )
