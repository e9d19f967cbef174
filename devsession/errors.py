"""Error taxonomy for device sessions.

asyncssh exceptions are translated into these types at the adapter seams
(transport, filesystem, tunnel). Everything else propagates unchanged.
"""

from typing import Final

# SFTP status codes (draft-ietf-secsh-filexfer)
FX_NO_SUCH_FILE: Final[int] = 2
FX_NO_SUCH_PATH: Final[int] = 10
FX_NOT_A_DIRECTORY: Final[int] = 19


class DeviceError(Exception):
    """Base class for all device session errors."""

    pass


class NotConnected(DeviceError):
    """Operation attempted without an open session or SFTP sub-session."""

    def __init__(self, message: str = "Not connected"):
        super().__init__(message)


class ConnectionFailed(DeviceError):
    """Handshake, authentication or timeout failure while connecting."""

    def __init__(self, target: str, original_error: BaseException):
        """Initialize connection failure.

        Args:
            target: Connection target (user@address:port)
            original_error: Exception raised by the transport
        """
        self.target = target
        self.original_error = original_error
        super().__init__(f"Cannot connect to {target}: {original_error}")


class ChannelError(DeviceError):
    """Command or shell channel could not be opened."""

    pass


class ForwardError(ChannelError):
    """Forwarded channel refused by the remote side."""

    pass


class ProtocolError(DeviceError):
    """Error reported by the SFTP layer that has no narrower type."""

    def __init__(
        self,
        message: str,
        code: int | None = None,
        path: str | None = None,
    ):
        self.code = code
        self.path = path
        super().__init__(message)


class NoSuchFile(ProtocolError):
    """Remote path does not exist."""

    pass


class NotADirectory(ProtocolError):
    """Remote path exists but is not a directory."""

    pass


class InvalidArgument(DeviceError, ValueError):
    """Argument rejected before any remote call was made."""

    pass


def translate_sftp_error(error: Exception, path: str) -> ProtocolError:
    """Map an asyncssh SFTP error onto the session error taxonomy.

    Args:
        error: asyncssh.SFTPError (or anything exposing code/reason)
        path: Remote path the failed request referred to

    Returns:
        NoSuchFile, NotADirectory, or a generic ProtocolError
    """
    code = getattr(error, "code", None)
    reason = getattr(error, "reason", None) or str(error)
    message = f"{path}: {reason}"

    if code in (FX_NO_SUCH_FILE, FX_NO_SUCH_PATH):
        return NoSuchFile(message, code=code, path=path)
    if code == FX_NOT_A_DIRECTORY:
        return NotADirectory(message, code=code, path=path)
    return ProtocolError(message, code=code, path=path)
