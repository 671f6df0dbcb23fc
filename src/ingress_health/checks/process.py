"""Non-invasive process existence probes."""
import os
from pathlib import Path
from typing import Protocol

from ingress_health.checks.errors import ProbeInconclusiveError, ProcessNotFoundError


class ProcessProbe(Protocol):
    """Answers whether a pid currently names a live process."""

    def ensure_alive(self, pid: int) -> None:
        """Return if pid is alive.

        Raises:
            ProcessNotFoundError: If no such process exists.
            ProbeInconclusiveError: If liveness cannot be determined.
        """
        ...


class SignalProcessProbe:
    """Existence check via signal 0.

    The kernel performs the pid lookup and permission check but delivers
    nothing, so the target's state is never changed.
    """

    def ensure_alive(self, pid: int) -> None:
        # kill(0, ...) addresses the caller's process group
        if pid <= 0:
            raise ProcessNotFoundError(pid)
        try:
            os.kill(pid, 0)
        except (ProcessLookupError, OverflowError):
            # a pid beyond pid_t cannot name any process
            raise ProcessNotFoundError(pid) from None
        except PermissionError as e:
            raise ProbeInconclusiveError(
                f"not permitted to probe pid {pid}: {e}"
            ) from e
        except OSError as e:
            raise ProbeInconclusiveError(f"cannot probe pid {pid}: {e}") from e


class ProcfsProcessProbe:
    """Existence check by reading /proc/<pid>/status.

    Zombies count as gone: they hold a pid but no longer serve anything.
    """

    def __init__(self, root: str | Path = "/proc") -> None:
        self._root = Path(root)

    def ensure_alive(self, pid: int) -> None:
        if pid <= 0:
            raise ProcessNotFoundError(pid)
        status = self._root / str(pid) / "status"
        try:
            content = status.read_text(encoding="utf-8", errors="replace")
        except FileNotFoundError:
            raise ProcessNotFoundError(pid) from None
        except OSError as e:
            raise ProbeInconclusiveError(
                f"cannot read {status}: {e}"
            ) from e

        for line in content.splitlines():
            if line.startswith("State:"):
                if line.split(":", 1)[1].strip().startswith("Z"):
                    raise ProcessNotFoundError(pid)
                return
        raise ProbeInconclusiveError(f"no State line in {status}")


def make_process_probe(kind: str) -> ProcessProbe:
    """Build the probe selected by configuration ('signal' or 'procfs')."""
    if kind == "signal":
        return SignalProcessProbe()
    if kind == "procfs":
        return ProcfsProcessProbe()
    raise ValueError(f"unknown process probe: {kind}")
