"""Gateway Signatures & OAuth State — HMAC checks and the opaque OAuth state blob.

Invariants:
    - Payment signature = hex(HMAC-SHA256(secret, "<gateway_order_id>|<payment_id>"))
    - Comparison is constant time (hmac.compare_digest)
    - OAuth state = urlsafe base64 of JSON {"csrf", "callbackUrl"}; undecodable
      state yields an empty csrf and callbackUrl "/"
    - The csrf value must equal the one stored in the browser's state cookie;
      an empty value never matches
    - callbackUrl must be a same-site path (starts with "/" but not "//")
"""

import base64
import binascii
import hashlib
import hmac
import json
from typing import NamedTuple


def payment_signature(secret: str, gateway_order_id: str, payment_id: str) -> str:
    body = f"{gateway_order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def verify_payment_signature(
    secret: str, gateway_order_id: str, payment_id: str, signature: str,
) -> bool:
    expected = payment_signature(secret, gateway_order_id, payment_id)
    return hmac.compare_digest(expected, signature or "")


def _safe_callback(url: object) -> str:
    if isinstance(url, str) and url.startswith("/") and not url.startswith("//"):
        return url
    return "/"


def encode_oauth_state(csrf: str, callback_url: str | None) -> str:
    payload = json.dumps({"csrf": csrf, "callbackUrl": _safe_callback(callback_url)})
    return base64.urlsafe_b64encode(payload.encode()).decode()


class OAuthState(NamedTuple):
    csrf: str
    callback_url: str


_EMPTY_STATE = OAuthState("", "/")


def decode_oauth_state(state: str | None) -> OAuthState:
    """Unpack the state blob; absent or malformed state gives no csrf and "/"."""
    if not state:
        return _EMPTY_STATE
    try:
        padded = state + "=" * (-len(state) % 4)
        parsed = json.loads(base64.urlsafe_b64decode(padded.encode()).decode())
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return _EMPTY_STATE
    if not isinstance(parsed, dict):
        return _EMPTY_STATE
    csrf = parsed.get("csrf")
    return OAuthState(
        csrf if isinstance(csrf, str) else "",
        _safe_callback(parsed.get("callbackUrl")),
    )


def state_matches(state: OAuthState, cookie_value: str | None) -> bool:
    if not state.csrf or not cookie_value:
        return False
    return hmac.compare_digest(state.csrf, cookie_value)


def post_login_redirect(callback_url: str, is_admin: bool) -> str:
    """Admins landing on the home or auth page go to the admin panel."""
    if is_admin and callback_url in ("/", "/auth"):
        return "/admin"
    if not callback_url or callback_url == "/auth":
        return "/"
    return callback_url
