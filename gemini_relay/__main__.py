"""Run gemini-relay under uvicorn: ``python -m gemini_relay``."""

import uvicorn

from gemini_relay.core.config import Settings, get_ssl_config
from gemini_relay.core.logging import configure_logging
from gemini_relay.main import create_app


def main() -> None:
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    ssl_kwargs = get_ssl_config(settings) or {}
    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        **ssl_kwargs,
    )


if __name__ == "__main__":
    main()
