"""Tests for auth routes — register, login, session lookup, logout and Google sign-in."""

from urllib.parse import parse_qs, urlsplit

from sqlalchemy import select

from stylesage.api.dependencies import get_google_oauth
from stylesage.config import get_settings
from stylesage.core.signatures import decode_oauth_state, encode_oauth_state
from stylesage.main import app
from stylesage.models.user import User
from tests.services.fakes import FakeGoogleOAuth

REGISTER = "/api/auth/register"


async def _register(client, email="new@example.com", password="secret123", name="New"):
    return await client.post(
        REGISTER, json={"email": email, "password": password, "name": name},
    )


# ─── Register / login ────────────────────────────────────────────

async def test_register_creates_user_and_sets_cookie(client):
    resp = await _register(client, email="  New@Example.com ")
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "User created successfully"
    assert body["user"]["email"] == "new@example.com"
    assert body["user"]["role"] == "user"
    assert "password_hash" not in body["user"]
    assert "auth_token=" in resp.headers["set-cookie"]
    assert "httponly" in resp.headers["set-cookie"].lower()

    me = await client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "new@example.com"


async def test_register_stores_bcrypt_hash(client, fresh_db):
    await _register(client)
    async with fresh_db() as s:
        user = (await s.execute(select(User))).scalar_one()
    assert user.password_hash.startswith("$2")
    assert user.provider == "email"


async def test_register_missing_fields(client):
    resp = await client.post(REGISTER, json={"email": "a@b.com", "password": "secret123"})
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Email, password, and name are required"


async def test_register_short_password(client):
    resp = await _register(client, password="12345")
    assert resp.status_code == 400
    assert resp.json()["error"]["message"] == "Password must be at least 6 characters long"


async def test_register_duplicate_email_is_conflict(client):
    await _register(client)
    resp = await _register(client, email="NEW@example.com")
    assert resp.status_code == 409
    assert resp.json()["error"]["message"] == "User with this email already exists"


async def test_register_configured_admin_email_gets_admin_role(client):
    resp = await _register(client, email="admin@stylesage.com")
    assert resp.json()["user"]["role"] == "admin"


async def test_login_with_valid_credentials(client):
    await _register(client)
    client.cookies.clear()
    resp = await client.post(
        "/api/auth/login", json={"email": "new@example.com", "password": "secret123"},
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Login successful"
    assert (await client.get("/api/auth/me")).status_code == 200


async def test_login_wrong_password(client):
    await _register(client)
    resp = await client.post(
        "/api/auth/login", json={"email": "new@example.com", "password": "wrong-pass"},
    )
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid email or password"


async def test_login_unknown_email_matches_wrong_password(client):
    resp = await client.post(
        "/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"},
    )
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid email or password"


async def test_login_missing_fields(client):
    resp = await client.post("/api/auth/login", json={"email": "a@b.com"})
    assert resp.status_code == 400


# ─── Session ─────────────────────────────────────────────────────

async def test_me_without_cookie(client):
    resp = await client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "No token provided"


async def test_me_with_bad_token_clears_cookie(client):
    client.cookies.set("auth_token", "not-a-jwt")
    resp = await client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Invalid token"
    cookie = resp.headers["set-cookie"]
    assert cookie.startswith("auth_token=")
    assert "Max-Age=0" in cookie


async def test_logout_clears_cookie(client):
    await _register(client)
    resp = await client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["message"] == "Logged out successfully"
    assert "Max-Age=0" in resp.headers["set-cookie"]


async def test_verify_token_in_body(client):
    await _register(client)
    token = client.cookies.get("auth_token")
    resp = await client.post("/api/auth/verify", json={"token": token})
    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == "new@example.com"

    bad = await client.post("/api/auth/verify", json={"token": "garbage"})
    assert bad.status_code == 401
    missing = await client.post("/api/auth/verify", json={})
    assert missing.status_code == 400


# ─── Google sign-in ──────────────────────────────────────────────

def _location_query(resp) -> dict:
    location = resp.headers["location"]
    assert location.startswith("https://stylesage.test/auth/callback/google?")
    return {k: v[0] for k, v in parse_qs(urlsplit(location).query).items()}


async def test_google_start_unconfigured(client):
    resp = await client.get("/api/auth/google")
    assert resp.status_code == 502
    assert resp.json()["error"]["code"] == "OAUTH_ERROR"


async def _callback(client, query, csrf="csrf-token", callback_url="/orders"):
    """Hit the callback the way a browser returning from Google would."""
    client.cookies.set("oauth_state", csrf)
    state = encode_oauth_state(csrf, callback_url)
    return await client.get(f"/api/auth/callback/google?{query}&state={state}")


async def test_google_start_sets_state_cookie_and_callback_accepts_it(client, settings):
    app.dependency_overrides[get_settings] = lambda: settings.model_copy(update={
        "google_client_id": "client-id",
        "google_redirect_uri": "https://stylesage.test/api/auth/callback/google",
    })
    app.dependency_overrides[get_google_oauth] = lambda: FakeGoogleOAuth()

    start = await client.get("/api/auth/google?callbackUrl=/cart")
    assert start.status_code == 302
    state = parse_qs(urlsplit(start.headers["location"]).query)["state"][0]
    csrf = decode_oauth_state(state).csrf
    assert f"oauth_state={csrf}" in start.headers["set-cookie"]

    resp = await client.get(f"/api/auth/callback/google?code=abc&state={state}")
    assert _location_query(resp) == {"auth": "success", "callbackUrl": "/cart"}


async def test_google_callback_creates_user_and_redirects(client, fresh_db):
    app.dependency_overrides[get_google_oauth] = lambda: FakeGoogleOAuth()
    resp = await _callback(client, "code=abc")

    assert resp.status_code == 302
    assert _location_query(resp) == {"auth": "success", "callbackUrl": "/orders"}
    assert "auth_token=" in resp.headers["set-cookie"]

    async with fresh_db() as s:
        user = (await s.execute(select(User))).scalar_one()
    assert user.email == "fan@example.com"
    assert user.provider == "google"
    assert user.google_id == "google-123"
    assert user.is_email_verified is True
    assert user.password_hash is None


async def test_google_callback_rejects_state_not_issued_to_this_browser(client, fresh_db):
    app.dependency_overrides[get_google_oauth] = lambda: FakeGoogleOAuth()
    client.cookies.set("oauth_state", "browser-token")
    state = encode_oauth_state("attacker-token", "/orders")
    resp = await client.get(f"/api/auth/callback/google?code=abc&state={state}")

    query = _location_query(resp)
    assert query["error"] == "invalid_state"
    assert "auth_token=" not in resp.headers.get("set-cookie", "")
    async with fresh_db() as s:
        assert (await s.execute(select(User))).scalars().all() == []


async def test_google_callback_without_state_cookie(client):
    app.dependency_overrides[get_google_oauth] = lambda: FakeGoogleOAuth()
    state = encode_oauth_state("csrf-token", "/orders")
    resp = await client.get(f"/api/auth/callback/google?code=abc&state={state}")
    assert _location_query(resp)["error"] == "invalid_state"


async def test_google_callback_admin_lands_on_admin_panel(client):
    app.dependency_overrides[get_google_oauth] = lambda: FakeGoogleOAuth(
        {"id": "g-1", "email": "admin@stylesage.com", "name": "Boss"},
    )
    resp = await _callback(client, "code=abc", callback_url="/")
    assert _location_query(resp)["callbackUrl"] == "/admin"


async def test_google_callback_provider_error(client):
    app.dependency_overrides[get_google_oauth] = lambda: FakeGoogleOAuth()
    resp = await client.get("/api/auth/callback/google?error=access_denied")
    assert resp.status_code == 302
    assert _location_query(resp)["error"] == "access_denied"


async def test_google_callback_without_code(client):
    app.dependency_overrides[get_google_oauth] = lambda: FakeGoogleOAuth()
    resp = await client.get("/api/auth/callback/google")
    assert _location_query(resp)["error"] == "no_code"


async def test_google_callback_exchange_failure(client):
    app.dependency_overrides[get_google_oauth] = lambda: FakeGoogleOAuth(fail=True)
    resp = await _callback(client, "code=abc")
    query = _location_query(resp)
    assert query["error"] == "authentication_failed"
    assert query["message"] == "Failed to exchange code for tokens"
    assert "auth_token=" not in resp.headers.get("set-cookie", "")
