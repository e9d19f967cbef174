"""SFTP-backed operations on the device filesystem.

Every call needs an attached SFTP client and raises NotConnected before any
network I/O when there is none. SFTP status errors are translated into the
session error taxonomy; other exceptions (local I/O, connection loss) pass
through unchanged.
"""

import logging
import math
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import asyncssh

from devsession.errors import NotConnected, translate_sftp_error
from devsession.models import DirectoryEntry, FileAttributes

if TYPE_CHECKING:
    from os import PathLike

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

# One outstanding request keeps memory bounded and progress monotonic
TRANSFER_MAX_REQUESTS = 1


def percent_complete(transferred: int, total: int) -> int:
    """Round a transfer fraction to an integer percentage (half up)."""
    if total <= 0:
        return 100
    return int(math.floor(transferred / total * 100 + 0.5))


def parse_mode(mode: int | str) -> int:
    """Accept permission bits as an int or an octal string like '755'."""
    if isinstance(mode, int):
        return mode
    return int(mode, 8)


class RemoteFilesystem:
    """Filesystem adapter over one SFTP sub-session."""

    def __init__(self, sftp: "asyncssh.SFTPClient | None" = None) -> None:
        self._sftp = sftp

    def attach(self, sftp: "asyncssh.SFTPClient") -> None:
        self._sftp = sftp

    def detach(self) -> None:
        self._sftp = None

    @property
    def is_attached(self) -> bool:
        return self._sftp is not None

    def _client(self) -> "asyncssh.SFTPClient":
        if self._sftp is None:
            raise NotConnected()
        return self._sftp

    async def stat(self, path: str) -> FileAttributes:
        """Stat a remote file or directory.

        Raises:
            NoSuchFile: If path does not exist
            ProtocolError: For any other SFTP failure
        """
        sftp = self._client()
        try:
            attrs = await sftp.stat(path)
        except asyncssh.SFTPError as e:
            raise translate_sftp_error(e, path) from e
        return FileAttributes.from_sftp(attrs)

    async def lstat(self, path: str) -> FileAttributes:
        """Stat a remote path without following a final symlink."""
        sftp = self._client()
        try:
            attrs = await sftp.lstat(path)
        except asyncssh.SFTPError as e:
            raise translate_sftp_error(e, path) from e
        return FileAttributes.from_sftp(attrs)

    async def list(self, path: str) -> list[DirectoryEntry]:
        """List a remote directory in the order the server returns it.

        The '.' and '..' entries are left out.
        """
        sftp = self._client()
        try:
            names = await sftp.readdir(path)
        except asyncssh.SFTPError as e:
            raise translate_sftp_error(e, path) from e

        entries = [DirectoryEntry.from_sftp(name) for name in names]
        return [e for e in entries if e.filename not in (".", "..")]

    async def mkdir(self, path: str) -> None:
        """Create exactly one directory level."""
        sftp = self._client()
        try:
            await sftp.mkdir(path)
        except asyncssh.SFTPError as e:
            raise translate_sftp_error(e, path) from e
        logger.debug("Created directory %s", path)

    async def rmdir(self, path: str) -> None:
        """Remove an empty directory."""
        sftp = self._client()
        try:
            await sftp.rmdir(path)
        except asyncssh.SFTPError as e:
            raise translate_sftp_error(e, path) from e
        logger.debug("Removed directory %s", path)

    async def unlink(self, path: str) -> None:
        """Remove a file or symlink."""
        sftp = self._client()
        try:
            await sftp.remove(path)
        except asyncssh.SFTPError as e:
            raise translate_sftp_error(e, path) from e
        logger.debug("Removed %s", path)

    async def chmod(self, path: str, mode: int | str) -> None:
        """Set permission bits."""
        sftp = self._client()
        try:
            await sftp.chmod(path, parse_mode(mode))
        except asyncssh.SFTPError as e:
            raise translate_sftp_error(e, path) from e

    async def download(
        self,
        remote_path: str,
        local_path: "str | PathLike[str]",
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Copy a remote file to the local host.

        A failed transfer may leave a partial file at local_path.
        """
        sftp = self._client()
        logger.info("Downloading %s -> %s", remote_path, local_path)
        try:
            await sftp.get(
                remote_path,
                local_path,
                max_requests=TRANSFER_MAX_REQUESTS,
                progress_handler=_progress_handler(on_progress),
            )
        except asyncssh.SFTPError as e:
            raise translate_sftp_error(e, remote_path) from e

    async def upload(
        self,
        local_path: "str | PathLike[str]",
        remote_path: str,
        mode: int | str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Copy a local file to the device.

        Args:
            local_path: File on this host
            remote_path: Destination path on the device
            mode: Permission bits applied once the upload completes
            on_progress: Called with an integer percentage per chunk

        A failed transfer may leave a partial file at remote_path.
        """
        sftp = self._client()
        logger.info("Uploading %s -> %s", local_path, remote_path)
        try:
            await sftp.put(
                local_path,
                remote_path,
                max_requests=TRANSFER_MAX_REQUESTS,
                progress_handler=_progress_handler(on_progress),
            )
            if mode is not None:
                await sftp.chmod(remote_path, parse_mode(mode))
        except asyncssh.SFTPError as e:
            raise translate_sftp_error(e, remote_path) from e


def _progress_handler(
    on_progress: ProgressCallback | None,
) -> Callable[[Any, Any, int, int], None] | None:
    """Adapt asyncssh's progress_handler signature to a percent callback."""
    if on_progress is None:
        return None

    def handler(_src: Any, _dst: Any, transferred: int, total: int) -> None:
        on_progress(percent_complete(transferred, total))

    return handler
