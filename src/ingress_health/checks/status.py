"""Loopback probe of the proxy's own status endpoint."""
import asyncio
from dataclasses import dataclass

import httpx

from ingress_health.checks.errors import (
    EndpointUnreachableError,
    UnexpectedResponseError,
)

LOOPBACK_HOST = "127.0.0.1"
DEFAULT_STATUS_PATH = "/healthz"
EXPECTED_BODY = "ok"
DEFAULT_TIMEOUT = 2.0
# anything longer than this cannot be the marker; stop reading there
MAX_BODY_BYTES = len(EXPECTED_BODY) + 64


@dataclass(frozen=True)
class StatusProbeResult:
    """What the status endpoint answered with."""

    status_code: int
    body: str


class StatusProbe:
    """Issues one bounded GET against 127.0.0.1:<port><path>.

    A fresh client is opened per call and closed on return or
    cancellation, so nothing is shared between concurrent probes.

    Attributes:
        path: Request path on the status server.
    """

    def __init__(
        self,
        path: str = DEFAULT_STATUS_PATH,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the probe.

        Args:
            path: Request path on the status server.
            transport: Optional httpx transport, replaced in tests.
        """
        self.path = path if path.startswith("/") else f"/{path}"
        self._transport = transport

    def url(self, port: int) -> str:
        """Build the probe URL for port."""
        return f"http://{LOOPBACK_HOST}:{port}{self.path}"

    async def probe(self, port: int, *, timeout: float = DEFAULT_TIMEOUT) -> StatusProbeResult:
        """Fetch the status endpoint once.

        The whole exchange, from connect to the last body byte, must finish
        within timeout. At most MAX_BODY_BYTES of the body are read.

        Args:
            port: Status port of the proxy.
            timeout: Upper bound in seconds for the entire request.

        Returns:
            Raw status code and decoded, possibly truncated, body.

        Raises:
            EndpointUnreachableError: On refused connection, timeout, or a
                broken HTTP exchange.
        """
        url = self.url(port)
        try:
            return await asyncio.wait_for(self._fetch(url, timeout), timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise EndpointUnreachableError(url, f"timed out after {timeout:g}s") from e
        except httpx.RequestError as e:
            raise EndpointUnreachableError(url, str(e) or type(e).__name__) from e

    async def _fetch(self, url: str, timeout: float) -> StatusProbeResult:
        body = bytearray()
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=httpx.Timeout(timeout),
            follow_redirects=False,
            trust_env=False,
        ) as client:
            async with client.stream("GET", url) as response:
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > MAX_BODY_BYTES:
                        break

        return StatusProbeResult(
            status_code=response.status_code,
            body=bytes(body[:MAX_BODY_BYTES]).decode("utf-8", errors="replace"),
        )

    async def check(self, port: int, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Probe and require exactly 200 with body 'ok'.

        Raises:
            EndpointUnreachableError: If the endpoint cannot be reached.
            UnexpectedResponseError: On any other status or body.
        """
        result = await self.probe(port, timeout=timeout)
        if result.status_code != httpx.codes.OK or result.body != EXPECTED_BODY:
            raise UnexpectedResponseError(self.url(port), result.status_code, result.body)
