"""Entry point for the health server."""

import asyncio
import contextlib
import sys

import structlog
import uvicorn
from pydantic import ValidationError

from ingress_health.app import create_app
from ingress_health.config import Settings
from ingress_health.logging import configure_logging

logger = structlog.get_logger()


async def serve(settings: Settings) -> None:
    """Run uvicorn until SIGTERM/SIGINT.

    uvicorn installs the signal handlers itself and lets in-flight probes
    finish within the shutdown timeout.

    Args:
        settings: Server configuration.
    """
    app = create_app(settings)

    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="warning",
        access_log=False,
        timeout_graceful_shutdown=int(settings.shutdown_timeout),
    )
    server = uvicorn.Server(config)
    await server.serve()


def main() -> None:
    """Entry point for python -m ingress_health."""
    try:
        settings = Settings()
    except ValidationError as e:
        configure_logging()
        logger.error("invalid_configuration", errors=e.errors(include_url=False))
        sys.exit(2)

    configure_logging(debug=settings.debug, json_logs=settings.log_json)

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(serve(settings))

    sys.exit(0)


if __name__ == "__main__":
    main()
