"""Request logging middleware."""
import time
from collections.abc import Awaitable, Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ingress_health.routes.healthz import HEALTHZ_PATH

logger = structlog.get_logger()

_HEALTHZ_SEGMENT = HEALTHZ_PATH.strip("/")


def is_healthz_path(path: str) -> bool:
    """Whether path addresses /healthz, at any mount prefix.

    Matches '/healthz', '/healthz/nginx' and '/internal/healthz', but not
    '/healthzz' or '/healthz-old'.
    """
    return _HEALTHZ_SEGMENT in path.strip("/").split("/")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs request timing in structured JSON format.

    Health checks arrive every few seconds from the orchestrator, so they
    are logged at debug; failures also surface at warning from the health
    route. Everything else is logged at info.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Time the request and log it at the level its path calls for.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware or route handler.

        Returns:
            HTTP response from handler.
        """
        path = request.url.path
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start) * 1000, 2)

        if is_healthz_path(path):
            logger.debug(
                "healthz_request",
                path=path,
                status=response.status_code,
                duration_ms=duration_ms,
            )
        else:
            logger.info(
                "http_request",
                method=request.method,
                path=path,
                status=response.status_code,
                duration_ms=duration_ms,
                client=request.client.host if request.client else None,
            )
        return response
