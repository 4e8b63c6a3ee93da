"""Upstream model targets.

Each target pairs a model identifier with its ``generateContent`` endpoint.
The API key is not part of the endpoint; the transport adds it as the
``key`` query parameter so endpoints are safe to log.
"""

from __future__ import annotations

from dataclasses import dataclass

from gemini_relay.core.config import Settings


@dataclass(frozen=True)
class UpstreamTarget:
    """A single upstream model endpoint.

    Attributes:
        name:     Model identifier (e.g. ``gemini-2.0-flash``).
        endpoint: Full ``generateContent`` URL without the key parameter.
    """

    name: str
    endpoint: str


def generate_content_url(base_url: str, model: str) -> str:
    """Return the ``generateContent`` URL for *model* under *base_url*."""
    return f"{base_url.rstrip('/')}/v1beta/models/{model}:generateContent"


def build_targets(settings: Settings) -> tuple[UpstreamTarget, UpstreamTarget]:
    """Build the (primary, fallback) target pair from Settings."""
    primary = UpstreamTarget(
        name=settings.PRIMARY_MODEL,
        endpoint=generate_content_url(settings.GEMINI_BASE_URL, settings.PRIMARY_MODEL),
    )
    fallback = UpstreamTarget(
        name=settings.FALLBACK_MODEL,
        endpoint=generate_content_url(settings.GEMINI_BASE_URL, settings.FALLBACK_MODEL),
    )
    return primary, fallback
