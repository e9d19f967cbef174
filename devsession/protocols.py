"""Protocol interfaces for dependency inversion.

The recursive path operations only need a handful of filesystem primitives.
Depending on this protocol instead of RemoteFilesystem keeps them testable
against an in-memory fake.

Usage Example:

    from devsession.protocols import FilesystemOperations

    async def ensure_project_dir(fs: FilesystemOperations) -> None:
        await mkdir_recursive(fs, "/home/robot/project")
"""

from typing import Protocol, runtime_checkable

from devsession.models import DirectoryEntry, FileAttributes


@runtime_checkable
class FilesystemOperations(Protocol):
    """Single-level remote filesystem primitives."""

    async def stat(self, path: str) -> FileAttributes:
        """Stat a path.

        Raises:
            NoSuchFile: If path does not exist
        """
        ...

    async def lstat(self, path: str) -> FileAttributes:
        """Stat a path without following a final symlink."""
        ...

    async def list(self, path: str) -> list[DirectoryEntry]:
        """List a directory without '.' and '..'."""
        ...

    async def mkdir(self, path: str) -> None:
        """Create one directory level."""
        ...

    async def rmdir(self, path: str) -> None:
        """Remove an empty directory."""
        ...

    async def unlink(self, path: str) -> None:
        """Remove a file or symlink."""
        ...
