"""Liveness check for the nginx worker: pid file, process, status endpoint."""
import asyncio
from dataclasses import dataclass

import structlog

from ingress_health.checks.base import CheckOutcome
from ingress_health.checks.errors import EndpointUnreachableError, HealthCheckError
from ingress_health.checks.filesystem import FileSystem
from ingress_health.checks.pidfile import DEFAULT_PID_FILE, read_pid
from ingress_health.checks.process import ProcessProbe
from ingress_health.checks.status import DEFAULT_TIMEOUT, StatusProbe

logger = structlog.get_logger()


@dataclass(frozen=True)
class CheckerDeps:
    """Everything a check pass reads. Never mutated after construction.

    Attributes:
        status_port: Loopback port of the proxy status server.
        filesystem: File access used to read the pid file.
        process_probe: Process existence probe.
        status_probe: HTTP probe of the status endpoint.
        pid_file: Location of the worker's pid file.
        timeout: Upper bound in seconds for the status request.
    """

    status_port: int
    filesystem: FileSystem
    process_probe: ProcessProbe
    status_probe: StatusProbe
    pid_file: str = DEFAULT_PID_FILE
    timeout: float = DEFAULT_TIMEOUT


class NginxChecker:
    """Fail-fast aggregation of the three liveness signals.

    Each call re-reads the pid file, re-probes the process and re-issues
    the HTTP request; nothing is remembered between calls.
    """

    def __init__(self, deps: CheckerDeps, name: str = "nginx") -> None:
        self.name = name
        self._deps = deps

    async def check(self, deadline: float | None = None) -> None:
        """Run pid read, process probe and status probe in order.

        Args:
            deadline: Optional event loop time bounding the status request
                further than the configured timeout.

        Raises:
            HealthCheckError: The first failing step's error, unchanged.
        """
        deps = self._deps
        pid = read_pid(deps.filesystem, deps.pid_file)
        deps.process_probe.ensure_alive(pid)

        timeout = deps.timeout
        if deadline is not None:
            remaining = deadline - asyncio.get_running_loop().time()
            if remaining <= 0:
                raise EndpointUnreachableError(
                    deps.status_probe.url(deps.status_port), "deadline exceeded"
                )
            timeout = min(timeout, remaining)

        await deps.status_probe.check(deps.status_port, timeout=timeout)

    async def evaluate(self, deadline: float | None = None) -> CheckOutcome:
        """Run check() and fold the result into a CheckOutcome."""
        try:
            await self.check(deadline)
        except HealthCheckError as e:
            logger.debug("nginx_check_failed", check=self.name, error=str(e))
            return CheckOutcome(healthy=False, cause=e)
        return CheckOutcome(healthy=True)
