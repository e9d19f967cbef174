"""Forwarded channel data model."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import asyncssh


@dataclass
class TunnelChannel:
    """Raw bidirectional byte stream bound to a forwarded connection.

    Ownership belongs to whoever requested it. Nothing here frames or
    interprets the bytes.
    """

    reader: "asyncssh.SSHReader[bytes]"
    writer: "asyncssh.SSHWriter[bytes]"
    remote_port: int

    def close(self) -> None:
        """Close the forwarded channel."""
        self.writer.close()
