"""Google OAuth Client — authorization URL, code exchange and userinfo lookup.

Invariants:
    - Scope is "openid email profile", access_type=offline, prompt=consent
    - state is opaque here (built by core/signatures.py)
    - Every non-2xx response or transport failure mapped to OAuthError
"""

import logging
from urllib.parse import urlencode

import httpx

from stylesage.core.errors import OAuthError

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"
SCOPE = "openid email profile"


class GoogleOAuthClient:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout_seconds: int = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def authorize_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": SCOPE,
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> dict:
        """Trade an authorization code for tokens."""
        data = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": "authorization_code",
        }
        return await self._request("POST", TOKEN_URL, data=data)

    async def get_user_info(self, access_token: str) -> dict:
        """Fetch {id, email, name, picture, verified_email} for the token owner."""
        return await self._request(
            "GET", USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport,
            ) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Google OAuth request failed: {e}")
            raise OAuthError("Could not reach Google")
        if response.status_code >= 400:
            logger.warning(
                f"Google OAuth returned {response.status_code}",
                extra={"status_code": response.status_code, "path": url},
            )
            raise OAuthError(f"Google rejected the request ({response.status_code})")
        return response.json()
