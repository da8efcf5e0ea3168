"""Auth Schemas — register, login and token verification payloads.

Invariants:
    - Emails are stripped and lowercased before reaching services
    - Presence checks (400) and password length (400) are enforced in
      services/users.py so the messages match for JSON and form clients
"""

from pydantic import BaseModel, field_validator


def _normalize_email(v: str | None) -> str | None:
    return v.strip().lower() if isinstance(v, str) else v


class RegisterRequest(BaseModel):
    email: str | None = None
    password: str | None = None
    name: str | None = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return _normalize_email(v)


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return _normalize_email(v)


class VerifyTokenRequest(BaseModel):
    token: str | None = None
