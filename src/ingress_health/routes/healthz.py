"""Health check endpoints consumed by liveness and readiness probes.

Mirrors the Kubernetes healthz contract: ``GET /healthz`` answers
``200 ok`` when every installed checker passes and ``500`` with a
per-check listing otherwise. ``GET /healthz/{name}`` runs one checker.
"""
import asyncio
from collections.abc import Sequence
from typing import Literal

import structlog
from fastapi import APIRouter, FastAPI, Query, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from ingress_health.checks.base import HealthChecker, PingChecker
from ingress_health.checks.errors import HealthCheckError

logger = structlog.get_logger()

HEALTHZ_PATH = "/healthz"


class CheckResult(BaseModel):
    """Result of one checker within a /healthz pass.

    Attributes:
        name: Checker name.
        status: 'ok', 'failed', or 'excluded'.
        message: Error description when status is 'failed'.
    """

    name: str
    status: Literal["ok", "failed", "excluded"]
    message: str | None = None

    def line(self) -> str:
        if self.status == "failed":
            return f"[-]{self.name} failed: {self.message}"
        if self.status == "excluded":
            return f"[+]{self.name} excluded: ok"
        return f"[+]{self.name} ok"


async def run_check(checker: HealthChecker, deadline: float | None = None) -> CheckResult:
    """Run one checker and capture its verdict.

    Never raises: anything a checker throws becomes a failed result so the
    endpoint always answers.

    Args:
        checker: Checker to run.
        deadline: Optional event loop time bound passed to the checker.

    Returns:
        Check result with status and optional error message.
    """
    try:
        await checker.check(deadline)
    except HealthCheckError as e:
        logger.warning("healthz_check_failed", check=checker.name, error=str(e))
        return CheckResult(name=checker.name, status="failed", message=str(e))
    except Exception as e:
        logger.exception("healthz_check_crashed", check=checker.name)
        return CheckResult(
            name=checker.name,
            status="failed",
            message=f"{type(e).__name__}: {e}",
        )
    return CheckResult(name=checker.name, status="ok")


def _deadline(timeout: float | None) -> float | None:
    if timeout is None:
        return None
    return asyncio.get_running_loop().time() + timeout


def build_router(checkers: Sequence[HealthChecker] = ()) -> APIRouter:
    """Create a router serving /healthz for the given checkers.

    Args:
        checkers: Checkers to run, in order. Defaults to a single ping.

    Returns:
        Router ready to be included in any FastAPI app or router.

    Raises:
        ValueError: If two checkers share a name.
    """
    installed = tuple(checkers) or (PingChecker(),)
    by_name = {c.name: c for c in installed}
    if len(by_name) != len(installed):
        raise ValueError("health checker names must be unique")

    router = APIRouter(tags=["health"])

    @router.get(HEALTHZ_PATH, response_class=PlainTextResponse)
    async def healthz(
        request: Request,
        timeout: float | None = Query(default=None, gt=0),
    ) -> PlainTextResponse:
        """Run every installed checker.

        Query parameters:
            verbose: List each check even when all pass.
            exclude: Checker name to skip; may repeat.
            timeout: Seconds the caller is willing to wait.

        Returns:
            200 'ok' when all pass, 500 with the per-check listing otherwise.
        """
        verbose = "verbose" in request.query_params
        excluded = set(request.query_params.getlist("exclude"))
        deadline = _deadline(timeout)

        results = []
        for checker in installed:
            if checker.name in excluded:
                results.append(CheckResult(name=checker.name, status="excluded"))
                continue
            results.append(await run_check(checker, deadline))

        failed = any(r.status == "failed" for r in results)
        if not failed and not verbose:
            return PlainTextResponse("ok", status_code=status.HTTP_200_OK)

        lines = [r.line() for r in results]
        unmatched = sorted(excluded - by_name.keys())
        if unmatched:
            names = ", ".join(f'"{n}"' for n in unmatched)
            lines.append(
                f"warn: some health checks cannot be excluded: no matches for {names}"
            )
        if failed:
            lines.append("healthz check failed")
            code = status.HTTP_500_INTERNAL_SERVER_ERROR
        else:
            lines.append("healthz check passed")
            code = status.HTTP_200_OK
        return PlainTextResponse("\n".join(lines) + "\n", status_code=code)

    @router.get(HEALTHZ_PATH + "/{name}", response_class=PlainTextResponse)
    async def healthz_one(
        name: str,
        timeout: float | None = Query(default=None, gt=0),
    ) -> PlainTextResponse:
        """Run a single named checker.

        Returns:
            200 'ok', 500 with the error description, or 404 for an
            unknown name.
        """
        checker = by_name.get(name)
        if checker is None:
            return PlainTextResponse(
                f"health check {name!r} not found",
                status_code=status.HTTP_404_NOT_FOUND,
            )
        result = await run_check(checker, _deadline(timeout))
        if result.status == "failed":
            return PlainTextResponse(
                f"internal server error: {result.message}",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return PlainTextResponse("ok", status_code=status.HTTP_200_OK)

    return router


def install_handler(target: FastAPI | APIRouter, *checkers: HealthChecker) -> None:
    """Mount /healthz for checkers on an app or router.

    Args:
        target: FastAPI application or router supplied by the host.
        checkers: Checkers to serve; a ping checker when none are given.
    """
    target.include_router(build_router(checkers))
