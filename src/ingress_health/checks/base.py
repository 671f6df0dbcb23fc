"""Shared health check types."""
from dataclasses import dataclass
from typing import Protocol

from ingress_health.checks.errors import HealthCheckError


@dataclass(frozen=True)
class CheckOutcome:
    """Verdict of a single check pass.

    Attributes:
        healthy: True when every step succeeded.
        cause: First failure encountered, None when healthy.
    """

    healthy: bool
    cause: HealthCheckError | None = None


class HealthChecker(Protocol):
    """Named check that can be mounted under /healthz."""

    name: str

    async def check(self, deadline: float | None = None) -> None:
        """Return when healthy, raise HealthCheckError otherwise.

        Args:
            deadline: Optional event loop time by which the check must
                finish.
        """
        ...


class PingChecker:
    """Always healthy. Installed when no other checker is given."""

    name = "ping"

    async def check(self, deadline: float | None = None) -> None:
        return None
