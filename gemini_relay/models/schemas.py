"""Request/response Pydantic models and upstream body helpers.

Covers the inbound ``{"prompt": ...}`` envelope, the Gemini
``generateContent`` request shape, and the loosely specified upstream
error body with its message-extraction precedence.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError


class HealthResponse(BaseModel):
    """Response model for GET /health."""

    service: str
    version: str
    status: str
    uptime_seconds: float


class GenerateRequest(BaseModel):
    """Inbound body for POST /api/generate.  Unknown keys are ignored."""

    prompt: StrictStr = Field(..., min_length=1)


def build_generate_content_body(prompt: str) -> dict:
    """Wrap *prompt* in the single-turn ``generateContent`` request shape."""
    return {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}


# ── Upstream error body ─────────────────────────────────────────────────


class UpstreamErrorDetail(BaseModel):
    """Structured ``error`` object as returned by Google APIs."""

    model_config = ConfigDict(extra="allow")

    message: str | None = None
    code: Any = None
    status: Any = None


class UpstreamErrorBody(BaseModel):
    """Upstream error payload.  ``error`` may be an object, a bare string, or absent."""

    model_config = ConfigDict(extra="allow")

    error: UpstreamErrorDetail | str | None = None


def _dump(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), default=str)


def extract_error_message(payload: Any) -> str:
    """Best-effort human-readable message from an upstream error payload.

    Precedence: ``error.message``, then ``error`` itself (a string as-is,
    an object as JSON), then the whole payload as JSON.
    """
    try:
        body = UpstreamErrorBody.model_validate(payload)
    except ValidationError:
        return _dump(payload)

    error = body.error
    if isinstance(error, UpstreamErrorDetail):
        if error.message:
            return error.message
        return _dump(payload["error"])
    if error:
        return error
    return _dump(payload)
