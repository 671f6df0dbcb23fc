"""FastAPI application factory and lifespan management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI

from ingress_health.checks import (
    CheckerDeps,
    FileSystem,
    NginxChecker,
    OsFileSystem,
    ProcessProbe,
    StatusProbe,
    make_process_probe,
)
from ingress_health.config import Settings
from ingress_health.middleware.logging import RequestLoggingMiddleware
from ingress_health.routes.healthz import install_handler

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Log startup and shutdown.

    Checks hold no open resources between requests, so there is nothing
    to set up or tear down.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info(
        "healthz_startup",
        host=settings.host,
        port=settings.port,
        status_port=settings.status_port,
        pid_file=settings.pid_file,
    )
    try:
        yield
    finally:
        logger.info("healthz_shutdown")


def build_checker(
    settings: Settings,
    *,
    filesystem: FileSystem | None = None,
    process_probe: ProcessProbe | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> NginxChecker:
    """Assemble the nginx checker from settings and capabilities.

    Args:
        settings: Configuration instance.
        filesystem: File access, defaults to the real filesystem.
        process_probe: Process probe, defaults to the configured kind.
        transport: httpx transport for the status probe.

    Returns:
        Checker with its immutable dependencies bound.
    """
    deps = CheckerDeps(
        status_port=settings.status_port,
        filesystem=filesystem or OsFileSystem(),
        process_probe=process_probe or make_process_probe(settings.process_probe),
        status_probe=StatusProbe(path=settings.status_path, transport=transport),
        pid_file=settings.pid_file,
        timeout=settings.status_timeout,
    )
    return NginxChecker(deps, name=settings.check_name)


def create_app(
    settings: Settings | None = None,
    *,
    filesystem: FileSystem | None = None,
    process_probe: ProcessProbe | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Factory function to create the configured health server.

    Args:
        settings: Configuration instance. Creates default if None.
        filesystem: File access override, used by tests.
        process_probe: Process probe override, used by tests.
        transport: httpx transport override, used by tests.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Ingress Health",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings

    app.add_middleware(RequestLoggingMiddleware)

    checker = build_checker(
        settings,
        filesystem=filesystem,
        process_probe=process_probe,
        transport=transport,
    )
    install_handler(app, checker)

    return app
