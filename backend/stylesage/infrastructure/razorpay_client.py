"""Resilient Razorpay Client — creates gateway orders with retry, backoff, and error mapping.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection, timeout): max_retries retries with backoff
    - Client errors (4xx except 429): immediate failure, no retry
    - All failures mapped to PaymentGatewayError (core/errors.py)
    - Amounts are integers in minor units (paise)

Design Decisions:
    - Plain REST over httpx: the gateway surface used here is one POST
    - Wrapper isolates retry logic from services/orders.py
    - ±25% jitter on backoff: prevents thundering herd on shared rate limits
"""

import asyncio
import logging
import random

import httpx

from stylesage.core.errors import ErrorContext, PaymentGatewayError

logger = logging.getLogger(__name__)


class ResilientRazorpayClient:
    """Wraps the Razorpay orders API with retry logic, timeouts, and error mapping."""

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        max_retries: int = 3,
        base_delay_ms: int = 500,
        max_delay_ms: int = 8_000,
        timeout_seconds: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.key_id = key_id
        self._auth = (key_id, key_secret)
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def create_order(
        self,
        *,
        amount: int,
        currency: str,
        receipt: str,
        notes: dict | None = None,
        context: ErrorContext | None = None,
    ) -> dict:
        """Create a gateway order; returns the gateway JSON (id, amount, currency, ...)."""
        payload = {
            "amount": amount,
            "currency": currency,
            "receipt": receipt,
            "notes": notes or {},
        }
        return await self._post("/orders", payload, context)

    async def _post(
        self, path: str, payload: dict, context: ErrorContext | None,
    ) -> dict:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            auth=self._auth,
            timeout=self.timeout_seconds,
            transport=self._transport,
        ) as client:
            for attempt in range(self.max_retries + 1):
                try:
                    response = await client.post(path, json=payload)
                except httpx.TimeoutException as e:
                    await self._handle_transient_error(e, attempt, context)
                    continue
                except httpx.TransportError as e:
                    await self._handle_transient_error(e, attempt, context)
                    continue

                if response.status_code == 429:
                    await self._handle_rate_limit(response, attempt, context)
                    continue
                if response.status_code >= 500:
                    await self._handle_transient_error(
                        f"HTTP {response.status_code}", attempt, context,
                    )
                    continue
                if response.status_code >= 400:
                    raise PaymentGatewayError(
                        _error_description(response), "client_error",
                        context=context,
                    )
                logger.info(
                    "Razorpay API success",
                    extra={"attempt": attempt + 1, "path": path},
                )
                return response.json()
        raise PaymentGatewayError("No response from gateway", "unknown", context=context)

    async def _handle_rate_limit(
        self, response: httpx.Response, attempt: int, context: ErrorContext | None,
    ) -> None:
        """Handle rate limit error with retry or raise."""
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise PaymentGatewayError(
                "Rate limit exceeded after retries",
                "rate_limit",
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self, e: object, attempt: int, context: ErrorContext | None,
    ) -> None:
        """Handle transient errors with retry or raise."""
        if attempt >= self.max_retries:
            raise PaymentGatewayError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "connection_error",
                context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(f"Transient gateway error, retry after {delay}ms: {e}")
        await asyncio.sleep(delay / 1000)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    def _extract_retry_after(self, response: httpx.Response) -> int | None:
        """Extract Retry-After header (returns milliseconds)."""
        val = response.headers.get("retry-after")
        if val and val.isdigit():
            return int(val) * 1000
        return None


def _error_description(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("description"):
        return str(error["description"])
    return f"HTTP {response.status_code}"
