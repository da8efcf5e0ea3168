"""Users — registration, password login, Google sign-in and the default admin.

Invariants:
    - Emails stored lowercase; one account per email
    - Email accounts always carry a bcrypt hash; Google accounts never need one
    - Role "admin" granted only to configured admin emails (Settings.is_admin_email)
    - A token resolves to a user only if its signature, expiry and DB row are all valid

Design Decisions:
    - Password checks run bcrypt in a worker thread: 12 rounds would otherwise
      block the event loop for every login
"""

import logging
import uuid
from datetime import datetime, timezone

import anyio.to_thread
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stylesage.config import Settings
from stylesage.core.domain_types import AuthProvider, UserRole
from stylesage.core.errors import (
    AuthenticationError, DuplicateResourceError, ValidationFailedError,
)
from stylesage.infrastructure import security
from stylesage.models.user import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72  # bcrypt input limit


class UserService:
    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_by_id(self, user_id: str) -> User | None:
        try:
            uid = uuid.UUID(str(user_id))
        except ValueError:
            return None
        return await self.db.get(User, uid)

    def issue_token(self, user: User) -> str:
        return security.create_token(
            security.TokenClaims(user_id=str(user.id), email=user.email, role=user.role),
            self.settings.jwt_secret,
            self.settings.jwt_expiry_days,
        )

    async def user_from_token(self, token: str | None) -> User | None:
        claims = security.decode_token(token, self.settings.jwt_secret)
        if claims is None:
            return None
        return await self.get_by_id(claims.user_id)

    async def register(
        self, email: str | None, password: str | None, name: str | None,
    ) -> User:
        if not email or not password or not name or not name.strip():
            raise ValidationFailedError("Email, password, and name are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailedError(
                "Password must be at least 6 characters long", "password",
            )
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationFailedError("Password is too long", "password")
        if await self.get_by_email(email):
            raise DuplicateResourceError("User with this email already exists")

        password_hash = await anyio.to_thread.run_sync(security.hash_password, password)
        user = User(
            email=email.lower(),
            name=name.strip(),
            password_hash=password_hash,
            role=self._role_for(email),
            provider=AuthProvider.EMAIL.value,
            is_email_verified=False,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("User registered", extra={"user_id": str(user.id)})
        return user

    async def authenticate(self, email: str | None, password: str | None) -> User:
        if not email or not password:
            raise ValidationFailedError("Email and password are required")
        user = await self.get_by_email(email)
        if user is None or user.provider != AuthProvider.EMAIL.value:
            raise AuthenticationError("Invalid email or password")
        valid = await anyio.to_thread.run_sync(
            security.verify_password, password, user.password_hash,
        )
        if not valid:
            raise AuthenticationError("Invalid email or password")
        user.last_login_at = datetime.now(timezone.utc)
        await self.db.commit()
        return user

    async def sign_in_with_google(self, profile: dict) -> User:
        """Create or refresh the account for a Google userinfo profile."""
        email = (profile.get("email") or "").lower()
        if not email:
            raise AuthenticationError("Google account has no email address")
        user = await self.get_by_email(email)
        if user is None:
            user = User(
                email=email,
                name=profile.get("name") or email.split("@")[0],
                picture=profile.get("picture"),
                role=self._role_for(email),
                provider=AuthProvider.GOOGLE.value,
                google_id=profile.get("id"),
                is_email_verified=True,
            )
            self.db.add(user)
            logger.info("Created user from Google sign-in")
        else:
            user.last_login_at = datetime.now(timezone.utc)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def ensure_default_admin(self) -> bool:
        """Create the configured admin account if it does not exist yet."""
        if await self.get_by_email(self.settings.admin_email):
            return False
        password_hash = await anyio.to_thread.run_sync(
            security.hash_password, self.settings.admin_password,
        )
        self.db.add(User(
            email=self.settings.admin_email.lower(),
            name="Admin",
            password_hash=password_hash,
            role=UserRole.ADMIN.value,
            provider=AuthProvider.EMAIL.value,
            is_email_verified=True,
        ))
        await self.db.commit()
        logger.info("Default admin user created")
        return True

    def _role_for(self, email: str) -> str:
        if self.settings.is_admin_email(email):
            return UserRole.ADMIN.value
        return UserRole.USER.value
