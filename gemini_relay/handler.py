"""GenerateHandler: validate, call primary model, fall back on 429/503.

Framework-independent: ``handle()`` takes the method and parsed JSON body
and returns a ``HandlerResponse``.  The FastAPI route in ``main`` only
adapts it to HTTP.

Outcome mapping:

    not POST                    → 405 {"error": "Method not allowed"}
    bad / missing prompt        → 400 {"error": "Missing or invalid prompt"}
    no API key configured       → 500 {"error": "Missing GEMINI_API_KEY env var"}
    primary 2xx                 → 200 raw upstream body ({} if not JSON)
    primary 429/503 (exhausted) → fallback model, own attempt budget
    any other failure           → 500 {"error": {"message": ...}}
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from gemini_relay.core.config import Settings
from gemini_relay.core.errors import (
    DeadlineExceededError,
    ErrorResponse,
    GeminiRelayError,
    InvalidPromptError,
    MethodNotAllowedError,
    MissingCredentialError,
    UpstreamErrorResponse,
)
from gemini_relay.models.schemas import GenerateRequest, build_generate_content_body
from gemini_relay.retry_transport import CallOutcome, CallSuccess, RetryTransport
from gemini_relay.upstream import build_targets

logger = logging.getLogger(__name__)


@dataclass
class HandlerResponse:
    """Outbound response.

    ``body`` is either a JSON-serializable dict or the raw upstream bytes
    of a successful call, which are passed through untouched.
    """

    status_code: int
    body: dict | bytes


class GenerateHandler:
    """Handles one inbound generate request per ``handle()`` call.

    Holds no per-request state; a single instance serves all requests.

    Args:
        settings:  Immutable application settings (API key, models,
                   fallback switch, deadline).
        transport: ``RetryTransport`` used for both upstream targets.
    """

    def __init__(self, settings: Settings, transport: RetryTransport) -> None:
        self._settings = settings
        self._transport = transport
        self.primary, self.fallback = build_targets(settings)

    # ── Guards ──────────────────────────────────────────────────────

    @staticmethod
    def _check_method(method: str) -> None:
        if method.upper() != "POST":
            raise MethodNotAllowedError(method)

    @staticmethod
    def _validate_prompt(body: Any) -> str:
        try:
            return GenerateRequest.model_validate(body).prompt
        except ValidationError:
            raise InvalidPromptError() from None

    def _resolve_credentials(self) -> None:
        if not self._settings.GEMINI_API_KEY:
            raise MissingCredentialError()

    # ── Upstream flow ───────────────────────────────────────────────

    async def _generate(self, request_body: dict) -> CallOutcome:
        """Call the primary target, then the fallback on a transient failure."""
        outcome = await self._transport.call(self.primary, request_body)
        if isinstance(outcome, CallSuccess) or not outcome.is_transient:
            return outcome
        if not self._settings.FALLBACK_ENABLED:
            return outcome

        logger.warning(
            "%s still failing with HTTP %d after %d attempt(s), falling back to %s",
            self.primary.name,
            outcome.status_code,
            outcome.attempts,
            self.fallback.name,
        )
        return await self._transport.call(self.fallback, request_body)

    async def handle(self, method: str, body: Any) -> HandlerResponse:
        """Validate the request and forward it upstream.

        Args:
            method: Inbound HTTP method.
            body:   Parsed JSON body, or ``None`` if absent or not JSON.

        Returns:
            ``HandlerResponse`` ready to be rendered by the HTTP layer.
        """
        try:
            self._check_method(method)
            prompt = self._validate_prompt(body)
            self._resolve_credentials()
        except GeminiRelayError as exc:
            logger.info("Rejected request: %s", exc.message)
            return HandlerResponse(exc.status_code, ErrorResponse(error=exc.message).model_dump())

        request_body = build_generate_content_body(prompt)
        deadline = self._settings.REQUEST_DEADLINE_SECONDS
        try:
            outcome = await asyncio.wait_for(self._generate(request_body), timeout=deadline)
        except asyncio.TimeoutError:
            exc = DeadlineExceededError(deadline)
            logger.warning(exc.message)
            return HandlerResponse(exc.status_code, UpstreamErrorResponse.from_message(exc.message).model_dump())

        if isinstance(outcome, CallSuccess):
            # A 2xx body that is not JSON is answered as the empty payload
            return HandlerResponse(200, outcome.raw if outcome.is_json else outcome.payload)
        return HandlerResponse(500, UpstreamErrorResponse.from_message(outcome.message).model_dump())
