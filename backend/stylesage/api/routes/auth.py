"""Auth Routes — register, login, logout, session lookup and Google sign-in.

Invariants:
    - Successful register/login/Google callback set the auth cookie
    - /me with an invalid token answers 401 and clears the cookie
    - The Google callback always redirects to the frontend callback page,
      with auth=success or error/message query parameters
    - The callback proceeds only when the state csrf equals the state cookie
      set by /google; the cookie is cleared on every callback response
"""

import logging
import secrets
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.api.dependencies import (
    clear_auth_cookie, clear_oauth_state_cookie, get_google_oauth,
    set_auth_cookie, set_oauth_state_cookie,
)
from stylesage.config import Settings, get_settings
from stylesage.core.domain_types import UserRole
from stylesage.core.errors import (
    AuthenticationError, OAuthError, StorefrontError, ValidationFailedError,
)
from stylesage.core.signatures import (
    decode_oauth_state, encode_oauth_state, post_login_redirect, state_matches,
)
from stylesage.infrastructure.database import get_db
from stylesage.schemas.auth import LoginRequest, RegisterRequest, VerifyTokenRequest
from stylesage.services.users import UserService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    users = UserService(db, settings)
    user = await users.register(body.email, body.password, body.name)
    response = JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={"message": "User created successfully", "user": user.to_public()},
    )
    set_auth_cookie(response, users.issue_token(user), settings)
    return response


@router.post("/login")
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    users = UserService(db, settings)
    user = await users.authenticate(body.email, body.password)
    response = JSONResponse(
        content={"message": "Login successful", "user": user.to_public()},
    )
    set_auth_cookie(response, users.issue_token(user), settings)
    return response


@router.post("/logout")
async def logout(settings: Settings = Depends(get_settings)):
    response = JSONResponse(content={"message": "Logged out successfully"})
    clear_auth_cookie(response, settings)
    return response


@router.get("/me")
async def me(
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise AuthenticationError("No token provided")
    user = await UserService(db, settings).user_from_token(token)
    if user is None:
        response = JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=AuthenticationError("Invalid token").to_response(),
        )
        clear_auth_cookie(response, settings)
        return response
    return {"user": user.to_public()}


@router.post("/verify")
async def verify(
    body: VerifyTokenRequest,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if not body.token:
        raise ValidationFailedError("Token is required", "token")
    user = await UserService(db, settings).user_from_token(body.token)
    if user is None:
        raise AuthenticationError("Invalid token")
    return {"user": user.to_public()}


# ─── Google OAuth ────────────────────────────────────────────────

@router.get("/google")
async def google_start(
    callback_url: str | None = Query(None, alias="callbackUrl"),
    settings: Settings = Depends(get_settings),
    oauth=Depends(get_google_oauth),
):
    if not settings.google_oauth_configured:
        raise OAuthError("Google sign-in is not configured")
    csrf = secrets.token_urlsafe(16)
    state = encode_oauth_state(csrf, callback_url)
    response = RedirectResponse(
        oauth.authorize_url(state), status_code=status.HTTP_302_FOUND,
    )
    set_oauth_state_cookie(response, csrf, settings)
    return response


def _frontend_callback(settings: Settings, params: dict) -> str:
    return f"{settings.app_url.rstrip('/')}/auth/callback/google?{urlencode(params)}"


def _callback_redirect(settings: Settings, params: dict) -> RedirectResponse:
    """Redirect to the frontend callback page; the state cookie is single use."""
    response = RedirectResponse(
        _frontend_callback(settings, params), status_code=status.HTTP_302_FOUND,
    )
    clear_oauth_state_cookie(response, settings)
    return response


@router.get("/callback/google")
async def google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    oauth=Depends(get_google_oauth),
):
    oauth_state = decode_oauth_state(state)

    if error:
        logger.warning(f"Google OAuth returned error: {error}")
        return _callback_redirect(settings, {"error": error, "message": error})
    if not code:
        return _callback_redirect(
            settings, {"error": "no_code", "message": "Missing authorization code"},
        )
    if not state_matches(
        oauth_state, request.cookies.get(settings.oauth_state_cookie_name),
    ):
        logger.warning("Google OAuth state did not match the state cookie")
        return _callback_redirect(
            settings, {"error": "invalid_state", "message": "Invalid sign-in state"},
        )

    users = UserService(db, settings)
    try:
        tokens = await oauth.exchange_code(code)
        profile = await oauth.get_user_info(tokens["access_token"])
        user = await users.sign_in_with_google(profile)
    except (StorefrontError, KeyError) as e:
        message = e.message if isinstance(e, StorefrontError) else "Authentication failed"
        logger.error(f"OAuth callback failed: {message}")
        return _callback_redirect(
            settings, {"error": "authentication_failed", "message": message},
        )

    redirect_to = post_login_redirect(
        oauth_state.callback_url, user.role == UserRole.ADMIN.value,
    )
    response = _callback_redirect(
        settings, {"auth": "success", "callbackUrl": redirect_to},
    )
    set_auth_cookie(response, users.issue_token(user), settings)
    return response
