"""Health checks for the managed nginx worker."""
from ingress_health.checks.base import CheckOutcome, HealthChecker, PingChecker
from ingress_health.checks.errors import (
    EndpointUnreachableError,
    HealthCheckError,
    ParseError,
    PidFileNotFoundError,
    ProbeInconclusiveError,
    ProcessNotFoundError,
    UnexpectedResponseError,
)
from ingress_health.checks.filesystem import FileSystem, MemoryFileSystem, OsFileSystem
from ingress_health.checks.nginx import CheckerDeps, NginxChecker
from ingress_health.checks.process import (
    ProcessProbe,
    ProcfsProcessProbe,
    SignalProcessProbe,
    make_process_probe,
)
from ingress_health.checks.status import StatusProbe, StatusProbeResult

__all__ = [
    "CheckOutcome",
    "CheckerDeps",
    "EndpointUnreachableError",
    "FileSystem",
    "HealthCheckError",
    "HealthChecker",
    "MemoryFileSystem",
    "NginxChecker",
    "OsFileSystem",
    "ParseError",
    "PidFileNotFoundError",
    "PingChecker",
    "ProbeInconclusiveError",
    "ProcessNotFoundError",
    "ProcessProbe",
    "ProcfsProcessProbe",
    "SignalProcessProbe",
    "StatusProbe",
    "StatusProbeResult",
    "UnexpectedResponseError",
    "make_process_probe",
]
