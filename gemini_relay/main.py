"""FastAPI application entrypoint.

Provides ``/api/generate`` (the Gemini proxy), a ``/health`` endpoint and
request-ID middleware.  ``create_app()`` is the single initialization point:
settings are read once and injected into the handler.
"""

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from gemini_relay.core.config import Settings
from gemini_relay.core.errors import ErrorResponse
from gemini_relay.handler import GenerateHandler
from gemini_relay.models.schemas import HealthResponse
from gemini_relay.retry_transport import RetryTransport

logger = logging.getLogger(__name__)

async def _read_json_body(request: Request) -> Any:
    """Return the parsed JSON body, or ``None`` if empty or not JSON."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def create_app(settings: Settings | None = None, transport: RetryTransport | None = None) -> FastAPI:
    """Build the FastAPI app.

    Args:
        settings:  Application settings; loaded from the environment if omitted.
        transport: Pre-built ``RetryTransport`` (tests inject one backed by
                   ``httpx.MockTransport``).
    """
    settings = settings or Settings()
    transport = transport or RetryTransport(settings)
    handler = GenerateHandler(settings, transport)
    start_time = time.monotonic()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "%s %s ready, primary=%s fallback=%s",
            settings.SERVICE_NAME,
            settings.SERVICE_VERSION,
            handler.primary.name,
            handler.fallback.name if settings.FALLBACK_ENABLED else "disabled",
        )
        yield
        await transport.close()

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.handler = handler

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next) -> Response:
        """Assign or preserve a unique request ID on every request."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        """Return service health with name, version, status, and uptime."""
        return HealthResponse(
            service=settings.SERVICE_NAME,
            version=settings.SERVICE_VERSION,
            status="healthy",
            uptime_seconds=round(time.monotonic() - start_time, 2),
        )

    async def generate(request: Request) -> Response:
        """Forward ``{"prompt": ...}`` to the Gemini API."""
        try:
            body = await _read_json_body(request) if request.method == "POST" else None
            result = await handler.handle(request.method, body)
        except Exception:
            # Never expose internal details
            logger.exception("Unhandled error in generate handler")
            return JSONResponse(
                status_code=500,
                content=ErrorResponse(error="An internal error occurred").model_dump(),
            )

        if isinstance(result.body, bytes):
            return Response(content=result.body, status_code=result.status_code, media_type="application/json")
        return JSONResponse(status_code=result.status_code, content=result.body)

    # No method filter: the handler answers 405 for anything but POST.
    app.router.add_route("/api/generate", generate, include_in_schema=False)

    return app


app = create_app()
