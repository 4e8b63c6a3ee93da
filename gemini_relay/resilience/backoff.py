"""Exponential backoff schedule for transient upstream statuses.

Only 429 (rate limited) and 503 (service unavailable) are transient.
Attempt indices are 1-based, so with a 1s base the waits after attempts
1, 2 and 3 are 1s, 2s and 4s.
"""

from __future__ import annotations

TRANSIENT_STATUS_CODES = frozenset({429, 503})


def is_transient_status(status_code: int) -> bool:
    """Return True when *status_code* warrants a retry or a model fallback."""
    return status_code in TRANSIENT_STATUS_CODES


def backoff_delay(attempt: int, base_delay: float = 1.0) -> float:
    """Seconds to wait after failed *attempt* before the next one."""
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    return base_delay * (2 ** (attempt - 1))
