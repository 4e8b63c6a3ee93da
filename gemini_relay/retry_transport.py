"""RetryTransport: one logical call to an upstream model.

``RetryTransport.call()`` POSTs a ``generateContent`` body to an
``UpstreamTarget`` and retries 429/503 responses with exponential backoff
until the attempt budget is spent.  Every outcome is returned as a value
(``CallSuccess`` or ``CallFailure``); nothing upstream-related is raised.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx

from gemini_relay.core.config import Settings
from gemini_relay.models.schemas import extract_error_message
from gemini_relay.resilience.backoff import backoff_delay, is_transient_status
from gemini_relay.upstream import UpstreamTarget

logger = logging.getLogger(__name__)

# ── Call outcomes ───────────────────────────────────────────────────────


@dataclass
class CallSuccess:
    """2xx response from the upstream.

    Attributes:
        payload:     Parsed JSON body (empty dict if not JSON).
        raw:         Response body bytes exactly as received.
        status_code: HTTP status code from the upstream.
        attempts:    Number of attempts used, including the successful one.
        is_json:     False when the body could not be parsed as JSON.
    """

    payload: Any
    raw: bytes
    status_code: int = 200
    attempts: int = 1
    is_json: bool = True


@dataclass
class CallFailure:
    """Terminal failure of a logical call.

    Attributes:
        status_code: Upstream HTTP status, or 502/504 for transport errors.
        message:     Human-readable message extracted from the error body.
        payload:     Parsed error body, ``None`` when no response was received.
        attempts:    Number of attempts used.
    """

    status_code: int
    message: str
    payload: Any = None
    attempts: int = 1

    @property
    def is_transient(self) -> bool:
        return is_transient_status(self.status_code)


CallOutcome = CallSuccess | CallFailure

Sleep = Callable[[float], Awaitable[Any]]


# ── Transport ───────────────────────────────────────────────────────────


class RetryTransport:
    """Sends ``generateContent`` requests with bounded retry.

    A single ``httpx.AsyncClient`` is shared by all calls.  Pass *client*
    to inject one (tests use ``httpx.MockTransport``); otherwise it is
    created on first use and closed by ``close()``.

    Args:
        settings: Application settings with the API key, timeout and
                  retry configuration.
        client:   Optional pre-built ``httpx.AsyncClient``.
        sleep:    Awaitable used for backoff waits (``asyncio.sleep``).
    """

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._api_key = settings.GEMINI_API_KEY
        self._timeout = settings.UPSTREAM_TIMEOUT_SECONDS
        self._max_attempts = settings.MAX_ATTEMPTS
        self._retry_base_delay = settings.RETRY_BASE_DELAY
        self._client = client
        self._sleep = sleep

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def _send_request(
        self,
        client: httpx.AsyncClient,
        target: UpstreamTarget,
        body: dict,
    ) -> httpx.Response:
        """Send a single POST to *target*."""
        return await client.post(
            target.endpoint,
            params={"key": self._api_key},
            json=body,
            headers={"Content-Type": "application/json"},
            timeout=self._timeout,
        )

    def _parse_body(self, response: httpx.Response) -> tuple[Any, bool]:
        """Parse a JSON response body; non-JSON bodies become ``{}``.

        Returns the payload and whether the body was valid JSON.
        """
        try:
            return response.json(), True
        except ValueError:
            return {}, False

    async def _retry_delay(
        self,
        target: UpstreamTarget,
        attempt: int,
        attempts: int,
        status_code: int,
    ) -> None:
        """Log a warning and sleep for exponential backoff."""
        delay = backoff_delay(attempt, self._retry_base_delay)
        logger.warning(
            "Retryable status %d from %s (attempt %d/%d), retrying in %.1fs",
            status_code,
            target.name,
            attempt,
            attempts,
            delay,
        )
        await self._sleep(delay)

    async def call(
        self,
        target: UpstreamTarget,
        request_body: dict,
        max_attempts: int | None = None,
    ) -> CallOutcome:
        """Send *request_body* to *target*, retrying transient statuses.

        Args:
            target:       Upstream model endpoint.
            request_body: JSON-serializable ``generateContent`` body.
            max_attempts: Attempt budget; defaults to ``Settings.MAX_ATTEMPTS``.

        Returns:
            ``CallSuccess`` on the first 2xx response, otherwise a
            ``CallFailure`` describing the last response received.
        """
        attempts = self._max_attempts if max_attempts is None else max_attempts
        client = self._get_client()

        for attempt in range(1, attempts + 1):
            try:
                response = await self._send_request(client, target, request_body)
            except httpx.TimeoutException:
                logger.warning("Timeout calling %s after %.1fs", target.name, self._timeout)
                return CallFailure(
                    status_code=504,
                    message=f"Upstream '{target.name}' timed out after {self._timeout}s",
                    attempts=attempt,
                )
            except httpx.TransportError as exc:
                logger.warning("Connection to %s failed: %s", target.name, exc)
                return CallFailure(
                    status_code=502,
                    message=f"Upstream '{target.name}' unavailable: {exc}",
                    attempts=attempt,
                )

            payload, is_json = self._parse_body(response)

            if response.is_success:
                return CallSuccess(
                    payload=payload,
                    raw=response.content,
                    status_code=response.status_code,
                    attempts=attempt,
                    is_json=is_json,
                )

            if is_transient_status(response.status_code) and attempt < attempts:
                await self._retry_delay(target, attempt, attempts, response.status_code)
                continue

            logger.info("%s failed with HTTP %d after %d attempt(s)", target.name, response.status_code, attempt)
            return CallFailure(
                status_code=response.status_code,
                message=extract_error_message(payload),
                payload=payload,
                attempts=attempt,
            )

        return CallFailure(status_code=500, message="Unknown retry failure", attempts=0)

    async def close(self) -> None:
        """Close the shared httpx client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
