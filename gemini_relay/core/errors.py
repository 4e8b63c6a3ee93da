"""Error hierarchy and error response bodies for gemini-relay.

Request-level errors carry the HTTP status code and the public message the
handler returns.  Upstream failures are not exceptions: they travel as
``CallFailure`` values from the retry transport and are rendered with
``UpstreamErrorResponse``.
"""

from pydantic import BaseModel


class GeminiRelayError(Exception):
    """Base exception for all gemini-relay errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class MethodNotAllowedError(GeminiRelayError):
    """Raised when the inbound request is not a POST."""

    status_code = 405

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__("Method not allowed")


class InvalidPromptError(GeminiRelayError):
    """Raised when the request body lacks a non-empty string ``prompt``."""

    status_code = 400

    def __init__(self) -> None:
        super().__init__("Missing or invalid prompt")


class MissingCredentialError(GeminiRelayError):
    """Raised when no API key is configured.  Never retried."""

    status_code = 500

    def __init__(self, env_var: str = "GEMINI_API_KEY") -> None:
        self.env_var = env_var
        super().__init__(f"Missing {env_var} env var")


class DeadlineExceededError(GeminiRelayError):
    """Raised when primary + fallback calls overrun the request deadline."""

    status_code = 500

    def __init__(self, deadline_seconds: float) -> None:
        self.deadline_seconds = deadline_seconds
        super().__init__(f"Request deadline exceeded after {deadline_seconds}s")


class ErrorResponse(BaseModel):
    """Flat error body: ``{"error": str}``."""

    error: str


class UpstreamErrorMessage(BaseModel):
    message: str


class UpstreamErrorResponse(BaseModel):
    """Nested error body for upstream failures: ``{"error": {"message": str}}``."""

    error: UpstreamErrorMessage

    @classmethod
    def from_message(cls, message: str) -> "UpstreamErrorResponse":
        return cls(error=UpstreamErrorMessage(message=message))
