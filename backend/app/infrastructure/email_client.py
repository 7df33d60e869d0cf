"""Resilient Email Client — wraps httpx.AsyncClient with retry, backoff, and error mapping.

Invariants:
    - Rate limits (429): exponential backoff with jitter, respects Retry-After header
    - Transient errors (5xx, connection): max N retries with exponential backoff
    - Client errors (4xx except 429) and timeouts: immediate failure, no retry
    - All failures mapped to EmailDeliveryError (core/errors.py)

Design Decisions:
    - Plain HTTP send API over SMTP: one POST per email, no connection state to babysit
    - ±25% jitter on backoff: spreads retries from many workers hitting the same limit
    - transport injectable: tests drive the client with httpx.MockTransport
"""

import asyncio
import random
import logging

import httpx

from app.core.email_templates import OutboundEmail
from app.core.errors import EmailDeliveryError, ErrorContext

logger = logging.getLogger(__name__)


class ResilientEmailClient:
    """Sends rendered emails through an HTTP send API with retry logic."""

    def __init__(
        self,
        api_url: str,
        api_token: str,
        sender_address: str,
        sender_name: str,
        max_retries: int = 3,
        base_delay_ms: int = 500,
        max_delay_ms: int = 10_000,
        timeout_seconds: int = 15,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url
        self.sender = {"email": sender_address, "name": sender_name}
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.client = httpx.AsyncClient(
            timeout=timeout_seconds,
            transport=transport,
            headers={
                "Authorization": f"Bearer {api_token}",
                "Content-Type": "application/json",
            },
        )

    async def send(
        self, email: OutboundEmail, context: ErrorContext | None = None,
    ) -> None:
        """Send one email, retrying transient failures."""
        payload = self._build_payload(email)
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.post(self.api_url, json=payload)
            except httpx.TimeoutException:
                raise EmailDeliveryError(
                    "API timeout", "timeout", context=context,
                )
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
                raise EmailDeliveryError(
                    f"HTTP {response.status_code}: {response.text[:200]}",
                    "client_error",
                    context=context,
                )

            logger.info(
                "Email accepted by send API",
                extra={
                    "attempt": attempt + 1,
                    "status_code": response.status_code,
                    "email_category": email.category,
                },
            )
            return

    async def aclose(self) -> None:
        await self.client.aclose()

    def _build_payload(self, email: OutboundEmail) -> dict:
        return {
            "from": self.sender,
            "to": [{"email": email.to_address, "name": email.to_name}],
            "subject": email.subject,
            "html": email.html,
            "text": email.text,
            "category": email.category,
        }

    async def _handle_rate_limit(
        self, response: httpx.Response, attempt: int, context: ErrorContext | None,
    ) -> None:
        """Handle rate limit response with retry or raise."""
        retry_after_ms = self._extract_retry_after(response)
        if attempt >= self.max_retries:
            raise EmailDeliveryError(
                "Rate limit exceeded after retries",
                "rate_limit",
                retry_after_ms=retry_after_ms,
                context=context,
            )
        delay = retry_after_ms or self._backoff(attempt)
        logger.warning(
            f"Email rate limit hit, retry after {delay}ms (attempt {attempt + 1})",
        )
        await asyncio.sleep(delay / 1000)

    async def _handle_transient_error(
        self, e: object, attempt: int, context: ErrorContext | None,
    ) -> None:
        """Handle transient errors with retry or raise."""
        if attempt >= self.max_retries:
            raise EmailDeliveryError(
                f"Transient failure after {self.max_retries} retries: {e}",
                "connection_error",
                context=context,
            )
        delay = self._backoff(attempt)
        logger.warning(f"Transient email error, retry after {delay}ms: {e}")
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
