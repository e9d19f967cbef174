"""Data models for devsession."""

from devsession.models.attributes import DirectoryEntry, FileAttributes, FileKind
from devsession.models.command import AuthPrompt, CommandResult, PtyOptions
from devsession.models.endpoint import DeviceEndpoint
from devsession.models.tunnel import TunnelChannel

__all__ = [
    "AuthPrompt",
    "CommandResult",
    "DeviceEndpoint",
    "DirectoryEntry",
    "FileAttributes",
    "FileKind",
    "PtyOptions",
    "TunnelChannel",
]
