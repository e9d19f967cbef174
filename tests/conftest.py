"""Shared fixtures: an in-memory SFTP server and asyncssh stand-ins."""

import posixpath
import stat
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import asyncssh
import pytest

from devsession.config import Settings
from devsession.models import DeviceEndpoint
from devsession.services.filesystem import RemoteFilesystem

FX_NO_SUCH_FILE = 2
FX_FAILURE = 4


def _norm(path: str) -> str:
    return posixpath.normpath(path) if path != "/" else "/"


class FakeSFTP:
    """Just enough of asyncssh.SFTPClient, backed by dicts.

    `calls` records every request as (operation, path). `failures` maps
    (operation, path) to an exception raised instead of performing it.
    `links` maps symlink paths to their targets; stat follows them, lstat
    does not.
    """

    def __init__(self, chunk_size: int = 4) -> None:
        self.dirs: set[str] = {"/"}
        self.files: dict[str, bytes] = {}
        self.links: dict[str, str] = {}
        self.modes: dict[str, int] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], Exception] = {}
        self.listing_order: dict[str, list[str]] = {}
        self.chunk_size = chunk_size
        self.max_requests: list[int] = []
        self.exited = False

    # Helpers for arranging state

    def add_dir(self, path: str) -> None:
        path = _norm(path)
        while path not in self.dirs:
            self.dirs.add(path)
            path = posixpath.dirname(path)

    def add_file(self, path: str, data: bytes = b"") -> None:
        path = _norm(path)
        self.add_dir(posixpath.dirname(path))
        self.files[path] = data

    def add_link(self, path: str, target: str) -> None:
        path = _norm(path)
        self.add_dir(posixpath.dirname(path))
        self.links[path] = _norm(target)

    def exists(self, path: str) -> bool:
        path = _norm(path)
        return path in self.dirs or path in self.files or path in self.links

    def ops(self, operation: str) -> list[str]:
        return [p for op, p in self.calls if op == operation]

    # SFTPClient surface

    def _request(self, operation: str, path: str) -> str:
        path = _norm(str(path))
        self.calls.append((operation, path))
        error = self.failures.get((operation, path))
        if error is not None:
            raise error
        return path

    def _children(self, path: str) -> list[str]:
        names = [
            posixpath.basename(p)
            for p in list(self.dirs) + list(self.files) + list(self.links)
            if p != "/" and posixpath.dirname(p) == path
        ]
        order = self.listing_order.get(path)
        if order is not None:
            return [n for n in order if n in names]
        return sorted(names)

    def _attrs(self, path: str) -> Any:
        if path in self.dirs:
            return SimpleNamespace(type=2, permissions=stat.S_IFDIR | 0o755, size=4096)
        if path in self.files:
            mode = self.modes.get(path, 0o644)
            return SimpleNamespace(
                type=1, permissions=stat.S_IFREG | mode, size=len(self.files[path])
            )
        raise asyncssh.SFTPError(FX_NO_SUCH_FILE, "No such file")

    async def stat(self, path: str) -> Any:
        path = self._request("stat", path)
        return self._attrs(self.links.get(path, path))

    async def lstat(self, path: str) -> Any:
        path = self._request("lstat", path)
        if path in self.links:
            return SimpleNamespace(type=3, permissions=stat.S_IFLNK | 0o777, size=0)
        return self._attrs(path)

    async def readdir(self, path: str) -> list[Any]:
        path = self._request("readdir", path)
        if path not in self.dirs:
            code = FX_FAILURE if path in self.files else FX_NO_SUCH_FILE
            raise asyncssh.SFTPError(code, "Cannot list")
        names = [".", ".."] + self._children(path)
        entries = []
        for name in names:
            full = _norm(posixpath.join(path, name))
            if name in (".", "..") or full in self.dirs:
                perms = stat.S_IFDIR | 0o755
            elif full in self.links:
                perms = stat.S_IFLNK | 0o777
            else:
                perms = stat.S_IFREG | 0o644
            entries.append(
                SimpleNamespace(
                    filename=name,
                    longname=name,
                    attrs=SimpleNamespace(permissions=perms, size=0),
                )
            )
        return entries

    async def mkdir(self, path: str) -> None:
        path = self._request("mkdir", path)
        if self.exists(path):
            raise asyncssh.SFTPError(FX_FAILURE, "Failure")
        if posixpath.dirname(path) not in self.dirs:
            raise asyncssh.SFTPError(FX_NO_SUCH_FILE, "No such file")
        self.dirs.add(path)

    async def rmdir(self, path: str) -> None:
        path = self._request("rmdir", path)
        if path not in self.dirs or self._children(path):
            raise asyncssh.SFTPError(FX_FAILURE, "Failure")
        self.dirs.remove(path)

    async def remove(self, path: str) -> None:
        path = self._request("remove", path)
        if path in self.links:
            del self.links[path]
            return
        if path not in self.files:
            raise asyncssh.SFTPError(FX_NO_SUCH_FILE, "No such file")
        del self.files[path]

    async def chmod(self, path: str, mode: int) -> None:
        path = self._request("chmod", path)
        if not self.exists(path):
            raise asyncssh.SFTPError(FX_NO_SUCH_FILE, "No such file")
        self.modes[path] = mode

    async def get(
        self,
        remotepath: str,
        localpath: Any,
        max_requests: int = 128,
        progress_handler: Any = None,
    ) -> None:
        path = self._request("get", remotepath)
        self.max_requests.append(max_requests)
        if path not in self.files:
            raise asyncssh.SFTPError(FX_NO_SUCH_FILE, "No such file")
        data = self.files[path]
        with open(localpath, "wb") as f:
            for copied in range(0, len(data), self.chunk_size):
                chunk = data[copied : copied + self.chunk_size]
                f.write(chunk)
                if progress_handler:
                    progress_handler(path, localpath, copied + len(chunk), len(data))

    async def put(
        self,
        localpath: Any,
        remotepath: str,
        max_requests: int = 128,
        progress_handler: Any = None,
    ) -> None:
        path = self._request("put", remotepath)
        self.max_requests.append(max_requests)
        if posixpath.dirname(path) not in self.dirs:
            raise asyncssh.SFTPError(FX_NO_SUCH_FILE, "No such file")
        with open(localpath, "rb") as f:
            data = f.read()
        written = b""
        for copied in range(0, len(data), self.chunk_size):
            written += data[copied : copied + self.chunk_size]
            self.files[path] = written
            if progress_handler:
                progress_handler(localpath, path, len(written), len(data))
        self.files[path] = data

    def exit(self) -> None:
        self.exited = True


class FakeReader:
    """Stream returning queued chunks, then b'' forever."""

    def __init__(self, *chunks: bytes) -> None:
        self._chunks = list(chunks)

    async def read(self, n: int = -1) -> bytes:
        if not self._chunks:
            return b""
        return self._chunks.pop(0)


def make_process(
    stdout: tuple[bytes, ...] = (),
    stderr: tuple[bytes, ...] = (),
    returncode: int | None = 0,
) -> Any:
    """Stand-in for asyncssh.SSHClientProcess."""
    return SimpleNamespace(
        stdout=FakeReader(*stdout),
        stderr=FakeReader(*stderr),
        stdin=MagicMock(),
        wait=AsyncMock(),
        returncode=returncode,
    )


@pytest.fixture
def fake_sftp() -> FakeSFTP:
    """In-memory SFTP server with the default home directory."""
    sftp = FakeSFTP()
    sftp.add_dir("/home/robot")
    return sftp


@pytest.fixture
def fs(fake_sftp: FakeSFTP) -> RemoteFilesystem:
    """Filesystem adapter attached to the fake SFTP server."""
    return RemoteFilesystem(fake_sftp)


@pytest.fixture
def settings() -> Settings:
    """Default settings, independent of the environment."""
    return Settings(password="maker", env={"LANG": "C.UTF-8"})


@pytest.fixture
def endpoint() -> DeviceEndpoint:
    return DeviceEndpoint.from_manual_entry("ev3dev", "192.168.0.7")


@pytest.fixture
def mock_conn(fake_sftp: FakeSFTP) -> MagicMock:
    """Stand-in for asyncssh.SSHClientConnection."""
    conn = MagicMock()
    conn.start_sftp_client = AsyncMock(return_value=fake_sftp)
    conn.create_process = AsyncMock(return_value=make_process())
    conn.open_connection = AsyncMock(return_value=(MagicMock(), MagicMock()))
    conn.wait_closed = AsyncMock()
    return conn


@pytest.fixture
def process_factory() -> Any:
    """Factory for asyncssh.SSHClientProcess stand-ins."""
    return make_process
