"""Remote file attribute data models."""

import stat
from dataclasses import dataclass
from enum import Enum
from typing import Any

# SFTP file types, used when the server sends no permission bits
_FILEXFER_TYPES = {1: "regular", 2: "directory", 3: "symlink"}


class FileKind(Enum):
    """Type of a remote filesystem entry."""

    REGULAR = "regular"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    OTHER = "other"


@dataclass(frozen=True)
class FileAttributes:
    """Snapshot of a remote stat result."""

    kind: FileKind
    size: int | None = None
    permissions: int | None = None
    uid: int | None = None
    gid: int | None = None
    atime: int | None = None
    mtime: int | None = None

    @classmethod
    def from_sftp(cls, attrs: Any) -> "FileAttributes":
        """Build from an asyncssh SFTPAttrs record."""
        permissions = getattr(attrs, "permissions", None)
        return cls(
            kind=_kind_of(permissions, getattr(attrs, "type", None)),
            size=getattr(attrs, "size", None),
            permissions=permissions,
            uid=getattr(attrs, "uid", None),
            gid=getattr(attrs, "gid", None),
            atime=getattr(attrs, "atime", None),
            mtime=getattr(attrs, "mtime", None),
        )

    def is_directory(self) -> bool:
        return self.kind is FileKind.DIRECTORY

    def is_file(self) -> bool:
        return self.kind is FileKind.REGULAR

    def is_symlink(self) -> bool:
        return self.kind is FileKind.SYMLINK

    @property
    def mode(self) -> int | None:
        """Permission bits without the file type."""
        if self.permissions is None:
            return None
        return stat.S_IMODE(self.permissions)


@dataclass(frozen=True)
class DirectoryEntry:
    """One entry of a remote directory listing."""

    filename: str
    attributes: FileAttributes
    longname: str = ""

    @classmethod
    def from_sftp(cls, name: Any) -> "DirectoryEntry":
        """Build from an asyncssh SFTPName record."""
        filename = name.filename
        if isinstance(filename, bytes):
            filename = filename.decode("utf-8", errors="replace")
        longname = getattr(name, "longname", "") or ""
        if isinstance(longname, bytes):
            longname = longname.decode("utf-8", errors="replace")
        return cls(
            filename=filename,
            attributes=FileAttributes.from_sftp(name.attrs),
            longname=longname,
        )


def _kind_of(permissions: int | None, file_type: int | None) -> FileKind:
    """Classify an entry from its mode bits, falling back to the SFTP type."""
    if permissions is not None and stat.S_IFMT(permissions):
        if stat.S_ISDIR(permissions):
            return FileKind.DIRECTORY
        if stat.S_ISREG(permissions):
            return FileKind.REGULAR
        if stat.S_ISLNK(permissions):
            return FileKind.SYMLINK
        return FileKind.OTHER

    name = _FILEXFER_TYPES.get(file_type) if file_type is not None else None
    return FileKind(name) if name else FileKind.OTHER
