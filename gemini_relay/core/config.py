"""Settings for the gemini-relay service.

All settings are loaded once at startup from environment variables with the
``GEMINI_RELAY_`` prefix and injected into the request handler.  The API key
is the one exception: it is read from the plain ``GEMINI_API_KEY`` variable
(the prefixed form is accepted as well).
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """gemini-relay configuration.

    Fields can be overridden by environment variables prefixed with
    ``GEMINI_RELAY_``.  For example, ``GEMINI_RELAY_MAX_ATTEMPTS=1``
    disables retries.  Instances are frozen: configuration is never
    mutated while the service is running.
    """

    # ── Service identity ────────────────────────────────────────────
    SERVICE_NAME: str = "gemini-relay"
    SERVICE_VERSION: str = "0.1.0"
    HOST: str = "0.0.0.0"
    PORT: int = 8090
    LOG_LEVEL: str = "INFO"

    # ── Upstream provider ───────────────────────────────────────────
    GEMINI_API_KEY: str = Field(
        default="",
        validation_alias=AliasChoices("GEMINI_API_KEY", "GEMINI_RELAY_GEMINI_API_KEY"),
    )
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com"
    PRIMARY_MODEL: str = "gemini-3-flash-preview"
    FALLBACK_MODEL: str = "gemini-2.0-flash"
    FALLBACK_ENABLED: bool = True

    # ── Retry / deadlines ───────────────────────────────────────────
    MAX_ATTEMPTS: int = Field(default=4, ge=1)  # Attempts per model, not per request
    RETRY_BASE_DELAY: float = Field(default=1.0, ge=0.0)  # 1s, 2s, 4s, ...
    UPSTREAM_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0.0)  # Per outbound call
    REQUEST_DEADLINE_SECONDS: float = Field(default=60.0, gt=0.0)  # Primary + fallback

    # ── TLS ─────────────────────────────────────────────────────────
    TLS_ENABLED: bool = False
    TLS_CERT_PATH: str = ""
    TLS_KEY_PATH: str = ""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_RELAY_",
        frozen=True,
        populate_by_name=True,
    )


def get_ssl_config(settings: Settings) -> dict | None:
    """Build uvicorn SSL kwargs from Settings.

    Returns ``None`` when TLS is disabled.
    Raises ``ValueError`` if paths are empty, or ``FileNotFoundError``
    if the referenced cert/key files do not exist on disk.
    """
    if not settings.TLS_ENABLED:
        return None

    if not settings.TLS_CERT_PATH or not settings.TLS_KEY_PATH:
        raise ValueError("TLS_CERT_PATH and TLS_KEY_PATH are required when TLS_ENABLED=true")

    cert_path = Path(settings.TLS_CERT_PATH)
    key_path = Path(settings.TLS_KEY_PATH)

    if not cert_path.exists():
        raise FileNotFoundError(f"TLS certificate not found: {cert_path}")
    if not key_path.exists():
        raise FileNotFoundError(f"TLS private key not found: {key_path}")

    return {
        "ssl_certfile": str(cert_path),
        "ssl_keyfile": str(key_path),
    }
