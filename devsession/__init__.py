"""devsession: SSH remote-control sessions for headless devices."""

from devsession.config import Settings
from devsession.device import Device, SessionState
from devsession.errors import (
    ChannelError,
    ConnectionFailed,
    DeviceError,
    ForwardError,
    InvalidArgument,
    NoSuchFile,
    NotADirectory,
    NotConnected,
    ProtocolError,
)
from devsession.models import AuthPrompt, DeviceEndpoint, FileAttributes, FileKind, PtyOptions

__all__ = [
    "AuthPrompt",
    "ChannelError",
    "ConnectionFailed",
    "Device",
    "DeviceEndpoint",
    "DeviceError",
    "FileAttributes",
    "FileKind",
    "ForwardError",
    "InvalidArgument",
    "NoSuchFile",
    "NotADirectory",
    "NotConnected",
    "ProtocolError",
    "PtyOptions",
    "SessionState",
    "Settings",
]
