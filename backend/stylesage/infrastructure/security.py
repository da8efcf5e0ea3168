"""Tokens & Passwords — JWT session tokens (PyJWT) and bcrypt password hashes.

Invariants:
    - Tokens are HS256 with claims userId, email, role, iat, exp
    - decode_token returns None for any invalid, expired or tampered token
    - Password hashes use bcrypt with 12 rounds
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

ALGORITHM = "HS256"
BCRYPT_ROUNDS = 12


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    role: str


def create_token(
    claims: TokenClaims, secret: str, expiry_days: int = 7,
    now: datetime | None = None,
) -> str:
    issued = now or datetime.now(timezone.utc)
    payload = {
        "userId": claims.user_id,
        "email": claims.email,
        "role": claims.role,
        "iat": issued,
        "exp": issued + timedelta(days=expiry_days),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str | None, secret: str) -> TokenClaims | None:
    if not token:
        return None
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except jwt.PyJWTError:
        return None
    try:
        return TokenClaims(
            user_id=payload["userId"], email=payload["email"], role=payload["role"],
        )
    except KeyError:
        return None


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False
