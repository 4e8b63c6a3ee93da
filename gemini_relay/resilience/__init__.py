"""Resilience helpers: backoff schedule and transient-status policy."""

from gemini_relay.resilience.backoff import (
    TRANSIENT_STATUS_CODES,
    backoff_delay,
    is_transient_status,
)

__all__ = [
    "TRANSIENT_STATUS_CODES",
    "backoff_delay",
    "is_transient_status",
]
