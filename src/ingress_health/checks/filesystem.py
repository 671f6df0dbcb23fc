"""File access capability used by the pid file reader.

Checks never touch the OS filesystem directly. Production wires in
OsFileSystem; tests wire in MemoryFileSystem.
"""
import threading
from pathlib import Path, PurePosixPath
from typing import IO, Protocol


class WritableFile(Protocol):
    """Handle returned by FileSystem.create."""

    def write(self, data: bytes) -> int: ...

    def close(self) -> None: ...


class FileSystem(Protocol):
    """Narrow file access interface.

    Implementations raise the builtin OSError subclasses
    (FileNotFoundError, PermissionError, ...) the way the OS does.
    """

    def makedirs(self, path: str, mode: int = 0o755) -> None: ...

    def create(self, path: str) -> WritableFile: ...

    def read_file(self, path: str) -> bytes: ...


class OsFileSystem:
    """FileSystem backed by the real filesystem."""

    def makedirs(self, path: str, mode: int = 0o755) -> None:
        Path(path).mkdir(mode=mode, parents=True, exist_ok=True)

    def create(self, path: str) -> IO[bytes]:
        return Path(path).open("wb")

    def read_file(self, path: str) -> bytes:
        return Path(path).read_bytes()


class _MemoryFile:
    """Writable handle into a MemoryFileSystem entry."""

    def __init__(self, fs: "MemoryFileSystem", path: str) -> None:
        self._fs = fs
        self._path = path
        self._closed = False

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError("write to closed file")
        self._fs._append(self._path, data)
        return len(data)

    def close(self) -> None:
        self._closed = True

    def __enter__(self) -> "_MemoryFile":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class MemoryFileSystem:
    """In-memory FileSystem for tests.

    Writes are visible to readers immediately, as with a real file that
    has not been closed yet. Safe to share between threads.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._dirs: set[str] = {"/"}
        self._files: dict[str, bytearray] = {}

    @staticmethod
    def _normalize(path: str) -> str:
        return str(PurePosixPath("/") / path)

    def makedirs(self, path: str, mode: int = 0o755) -> None:
        norm = PurePosixPath(self._normalize(path))
        parts = [str(p) for p in (norm, *norm.parents)]
        with self._lock:
            for part in parts:
                if part in self._files:
                    raise FileExistsError(part)
            self._dirs.update(parts)

    def create(self, path: str) -> _MemoryFile:
        norm = self._normalize(path)
        with self._lock:
            if norm in self._dirs:
                raise IsADirectoryError(norm)
            if str(PurePosixPath(norm).parent) not in self._dirs:
                raise FileNotFoundError(norm)
            self._files[norm] = bytearray()
        return _MemoryFile(self, norm)

    def read_file(self, path: str) -> bytes:
        norm = self._normalize(path)
        with self._lock:
            if norm in self._dirs:
                raise IsADirectoryError(norm)
            try:
                return bytes(self._files[norm])
            except KeyError:
                raise FileNotFoundError(norm) from None

    def remove(self, path: str) -> None:
        norm = self._normalize(path)
        with self._lock:
            try:
                del self._files[norm]
            except KeyError:
                raise FileNotFoundError(norm) from None

    def _append(self, path: str, data: bytes) -> None:
        with self._lock:
            # writes to a removed file go nowhere, like an unlinked inode
            buf = self._files.get(path)
            if buf is not None:
                buf.extend(data)
