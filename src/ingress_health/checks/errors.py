"""Typed failure causes reported by health checks."""


class HealthCheckError(Exception):
    """Base class for every reason a health check can fail."""


class PidFileNotFoundError(HealthCheckError, FileNotFoundError):
    """The configured pid file does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"pid file {path} not found")
        self.path = path


class ParseError(HealthCheckError, ValueError):
    """The pid file content is not a non-negative integer."""

    def __init__(self, path: str, content: str) -> None:
        super().__init__(f"pid file {path} does not contain a valid pid: {content!r}")
        self.path = path
        self.content = content


class ProcessNotFoundError(HealthCheckError):
    """No process with the recorded pid exists."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"no process with pid {pid}")
        self.pid = pid


class ProbeInconclusiveError(HealthCheckError):
    """Liveness could not be determined (permission denied and similar).

    Always treated as unhealthy.
    """


class EndpointUnreachableError(HealthCheckError):
    """The status endpoint refused the connection or timed out."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"status endpoint {url} unreachable: {reason}")
        self.url = url
        self.reason = reason


class UnexpectedResponseError(HealthCheckError):
    """The status endpoint answered, but not with 200 and the expected body."""

    def __init__(self, url: str, status_code: int, body: str) -> None:
        excerpt = body if len(body) <= 64 else body[:64] + "..."
        super().__init__(
            f"status endpoint {url} returned {status_code} with body {excerpt!r}"
        )
        self.url = url
        self.status_code = status_code
        self.body = body
