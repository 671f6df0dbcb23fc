"""Fail-fast nginx checker tests."""

import asyncio
from collections.abc import Callable

import httpx
import pytest

from fakes import FakeProcessProbe
from ingress_health.checks import (
    CheckerDeps,
    EndpointUnreachableError,
    MemoryFileSystem,
    NginxChecker,
    ParseError,
    PidFileNotFoundError,
    ProbeInconclusiveError,
    ProcessNotFoundError,
    SignalProcessProbe,
    StatusProbe,
    UnexpectedResponseError,
)

PID = 4242


class CountingHandler:
    """MockTransport handler that records requests."""

    def __init__(self, status_code: int = 200, body: bytes = b"ok") -> None:
        self.status_code = status_code
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, content=self.body)


@pytest.fixture
def handler() -> CountingHandler:
    return CountingHandler()


@pytest.fixture
def checker(
    fs: MemoryFileSystem,
    process_probe: FakeProcessProbe,
    handler: CountingHandler,
) -> NginxChecker:
    deps = CheckerDeps(
        status_port=18080,
        filesystem=fs,
        process_probe=process_probe,
        status_probe=StatusProbe(transport=httpx.MockTransport(handler)),
        pid_file="/run/nginx.pid",
        timeout=1.0,
    )
    return NginxChecker(deps)


@pytest.mark.asyncio
async def test_missing_pid_file(
    checker: NginxChecker,
    process_probe: FakeProcessProbe,
    handler: CountingHandler,
) -> None:
    """Stops at the pid file; later steps never run."""
    with pytest.raises(PidFileNotFoundError):
        await checker.check()
    assert process_probe.calls == []
    assert handler.requests == []


@pytest.mark.asyncio
async def test_unparseable_pid(
    checker: NginxChecker,
    write_pid: Callable[[str], None],
    process_probe: FakeProcessProbe,
) -> None:
    write_pid("nginx")
    with pytest.raises(ParseError):
        await checker.check()
    assert process_probe.calls == []


@pytest.mark.asyncio
async def test_dead_process_skips_status_probe(
    checker: NginxChecker,
    write_pid: Callable[[str], None],
    handler: CountingHandler,
) -> None:
    """No such process: unhealthy whatever the status endpoint says."""
    write_pid(str(PID))
    with pytest.raises(ProcessNotFoundError):
        await checker.check()
    assert handler.requests == []


@pytest.mark.asyncio
async def test_inconclusive_process_is_unhealthy(
    checker: NginxChecker,
    write_pid: Callable[[str], None],
    process_probe: FakeProcessProbe,
    handler: CountingHandler,
) -> None:
    write_pid(str(PID))
    process_probe.denied.add(PID)
    outcome = await checker.evaluate()
    assert not outcome.healthy
    assert isinstance(outcome.cause, ProbeInconclusiveError)
    assert handler.requests == []


@pytest.mark.asyncio
async def test_healthy(
    checker: NginxChecker,
    write_pid: Callable[[str], None],
    process_probe: FakeProcessProbe,
    handler: CountingHandler,
) -> None:
    write_pid(str(PID))
    process_probe.alive.add(PID)
    outcome = await checker.evaluate()
    assert outcome.healthy
    assert outcome.cause is None
    assert process_probe.calls == [PID]
    assert len(handler.requests) == 1


@pytest.mark.asyncio
async def test_bad_status_response(
    checker: NginxChecker,
    write_pid: Callable[[str], None],
    process_probe: FakeProcessProbe,
    handler: CountingHandler,
) -> None:
    write_pid(str(PID))
    process_probe.alive.add(PID)
    handler.status_code = 500
    with pytest.raises(UnexpectedResponseError):
        await checker.check()


@pytest.mark.asyncio
async def test_cause_returned_unmodified(
    checker: NginxChecker,
    write_pid: Callable[[str], None],
    process_probe: FakeProcessProbe,
) -> None:
    """evaluate() hands back the exact exception check() raised."""
    write_pid(str(PID))
    outcome = await checker.evaluate()
    assert isinstance(outcome.cause, ProcessNotFoundError)
    assert outcome.cause.pid == PID


@pytest.mark.asyncio
async def test_every_call_re_verifies(
    checker: NginxChecker,
    write_pid: Callable[[str], None],
    process_probe: FakeProcessProbe,
    handler: CountingHandler,
) -> None:
    """No memoization: each call reads, probes and requests again."""
    write_pid(str(PID))
    process_probe.alive.add(PID)
    for _ in range(3):
        assert (await checker.evaluate()).healthy
    assert process_probe.calls == [PID, PID, PID]
    assert len(handler.requests) == 3

    process_probe.alive.clear()
    assert not (await checker.evaluate()).healthy


@pytest.mark.asyncio
async def test_expired_deadline(
    checker: NginxChecker,
    write_pid: Callable[[str], None],
    process_probe: FakeProcessProbe,
    handler: CountingHandler,
) -> None:
    """A caller deadline already past skips the request."""
    write_pid(str(PID))
    process_probe.alive.add(PID)
    deadline = asyncio.get_running_loop().time() - 1
    with pytest.raises(EndpointUnreachableError, match="deadline exceeded"):
        await checker.check(deadline)
    assert handler.requests == []


@pytest.mark.asyncio
async def test_deadline_shortens_timeout(
    checker: NginxChecker,
    write_pid: Callable[[str], None],
    process_probe: FakeProcessProbe,
    handler: CountingHandler,
) -> None:
    write_pid(str(PID))
    process_probe.alive.add(PID)
    await checker.check(asyncio.get_running_loop().time() + 0.25)
    assert handler.requests[0].extensions["timeout"]["read"] <= 0.25


@pytest.mark.asyncio
async def test_concurrent_checks(
    checker: NginxChecker,
    write_pid: Callable[[str], None],
    process_probe: FakeProcessProbe,
    handler: CountingHandler,
) -> None:
    """Simultaneous probes each run their own pass."""
    write_pid(str(PID))
    process_probe.alive.add(PID)
    outcomes = await asyncio.gather(*(checker.evaluate() for _ in range(10)))
    assert all(o.healthy for o in outcomes)
    assert len(handler.requests) == 10


@pytest.mark.asyncio
async def test_cancellation_propagates(
    fs: MemoryFileSystem,
    write_pid: Callable[[str], None],
    process_probe: FakeProcessProbe,
) -> None:
    """Cancelling the caller aborts an in-flight status request."""
    started = asyncio.Event()

    async def slow(request: httpx.Request) -> httpx.Response:
        started.set()
        await asyncio.sleep(60)
        return httpx.Response(200, content=b"ok")

    deps = CheckerDeps(
        status_port=18080,
        filesystem=fs,
        process_probe=process_probe,
        status_probe=StatusProbe(transport=httpx.MockTransport(slow)),
        timeout=30.0,
    )
    write_pid(str(PID))
    process_probe.alive.add(PID)

    task = asyncio.create_task(NginxChecker(deps).check())
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_oversized_pid_yields_parse_error_outcome(
    fs: MemoryFileSystem,
    write_pid: Callable[[str], None],
    handler: CountingHandler,
) -> None:
    """With signal 0 liveness, a pid past pid_t is a typed outcome, not a crash."""
    deps = CheckerDeps(
        status_port=18080,
        filesystem=fs,
        process_probe=SignalProcessProbe(),
        status_probe=StatusProbe(transport=httpx.MockTransport(handler)),
    )
    write_pid("4294967296")
    outcome = await NginxChecker(deps).evaluate()
    assert not outcome.healthy
    assert isinstance(outcome.cause, ParseError)
    assert handler.requests == []
