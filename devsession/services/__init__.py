"""Services for devsession."""

from devsession.services.executors import (
    LineStream,
    OutputStreams,
    collect_output,
    stream_output,
)
from devsession.services.filesystem import RemoteFilesystem, percent_complete
from devsession.services.recursive import mkdir_recursive, remove_recursive
from devsession.services.transport import PromptResponder, TransportSession
from devsession.services.tunnel import DAEMON_PORT, open_tunnel

__all__ = [
    "DAEMON_PORT",
    "LineStream",
    "OutputStreams",
    "PromptResponder",
    "RemoteFilesystem",
    "TransportSession",
    "collect_output",
    "mkdir_recursive",
    "open_tunnel",
    "percent_complete",
    "remove_recursive",
    "stream_output",
]
