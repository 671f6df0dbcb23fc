"""Pid file reading."""
from ingress_health.checks.errors import (
    ParseError,
    PidFileNotFoundError,
    ProbeInconclusiveError,
)
from ingress_health.checks.filesystem import FileSystem

DEFAULT_PID_FILE = "/run/nginx.pid"
# largest value a signed 32-bit pid_t can hold
PID_MAX = 2**31 - 1


def parse_pid(path: str, raw: bytes) -> int:
    """Parse pid file content into a process identifier.

    Surrounding whitespace, including the trailing newline the worker
    writes, is ignored. Anything other than ASCII digits is rejected.

    Args:
        path: Pid file path, used in the error description.
        raw: File content.

    Returns:
        The process identifier, between 0 and PID_MAX.

    Raises:
        ParseError: If the content is not an integer in that range.
    """
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise ParseError(path, raw.decode("utf-8", errors="replace")) from None

    value = text.strip()
    if not value or not (value.isascii() and value.isdigit()):
        raise ParseError(path, text)
    # length first: int() refuses very long digit strings
    if len(value) > len(str(PID_MAX)) or int(value) > PID_MAX:
        raise ParseError(path, text)
    return int(value)


def read_pid(filesystem: FileSystem, path: str = DEFAULT_PID_FILE) -> int:
    """Read and parse the pid recorded at path.

    Performs exactly one read, no retries.

    Args:
        filesystem: File access capability.
        path: Pid file location.

    Returns:
        Parsed process identifier.

    Raises:
        PidFileNotFoundError: If the file does not exist.
        ParseError: If the content is not a valid pid.
        ProbeInconclusiveError: If the file exists but cannot be read.
    """
    try:
        raw = filesystem.read_file(path)
    except FileNotFoundError:
        raise PidFileNotFoundError(path) from None
    except OSError as e:
        raise ProbeInconclusiveError(f"cannot read pid file {path}: {e}") from e
    return parse_pid(path, raw)
