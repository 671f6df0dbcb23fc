"""Pytest configuration and fixtures."""

import socket
import subprocess
import sys
from collections.abc import Callable, Iterator
from pathlib import Path

# Add src and tests to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

import pytest
from fastapi.testclient import TestClient

from fakes import FakeProcessProbe, StatusServer, TricklingServer
from ingress_health.app import create_app
from ingress_health.checks import MemoryFileSystem
from ingress_health.config import Settings

PID_FILE = "/run/nginx.pid"


@pytest.fixture
def status_server() -> Iterator[StatusServer]:
    """Running status server answering 200 'ok'."""
    server = StatusServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def trickling_server() -> Iterator[TricklingServer]:
    """Status server that never finishes its response."""
    server = TricklingServer()
    server.start()
    yield server
    server.stop()


@pytest.fixture
def unused_port() -> int:
    """A loopback port nothing listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def sleeping_process() -> Iterator[int]:
    """Pid of a genuinely running child process."""
    proc = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(3600)"])
    yield proc.pid
    proc.kill()
    proc.wait()


@pytest.fixture
def fs() -> MemoryFileSystem:
    """In-memory filesystem with an empty /run directory."""
    memfs = MemoryFileSystem()
    memfs.makedirs("/run", 0o755)
    return memfs


@pytest.fixture
def write_pid(fs: MemoryFileSystem) -> Callable[[str], None]:
    """Overwrite the pid file in the in-memory filesystem."""

    def write(content: str) -> None:
        handle = fs.create(PID_FILE)
        handle.write(content.encode())
        handle.close()

    return write


@pytest.fixture
def process_probe() -> FakeProcessProbe:
    """Process probe fake with no live pids."""
    return FakeProcessProbe()


@pytest.fixture
def settings(status_server: StatusServer) -> Settings:
    """Create test settings pointed at the status server."""
    return Settings(
        host="127.0.0.1",
        port=10254,
        debug=True,
        status_port=status_server.port,
        status_timeout=1.0,
        pid_file=PID_FILE,
        _env_file=None,
    )


@pytest.fixture
def client(settings: Settings, fs: MemoryFileSystem) -> TestClient:
    """Create test client with the real process probe and in-memory files."""
    app = create_app(settings, filesystem=fs)
    return TestClient(app)
