"""Forwarded channels to daemons running on the device."""

import logging
from typing import TYPE_CHECKING

from devsession.models import TunnelChannel

if TYPE_CHECKING:
    from devsession.services.transport import TransportSession

logger = logging.getLogger(__name__)

# Port the companion daemon listens on, device side
DAEMON_PORT = 31313


async def open_tunnel(
    transport: "TransportSession",
    remote_port: int = DAEMON_PORT,
) -> TunnelChannel:
    """Open a forwarded channel to localhost:remote_port on the device.

    The source port is left to the transport. The returned channel is not
    tracked here; closing it is the caller's job.

    Raises:
        ForwardError: If the device refuses the forward
    """
    reader, writer = await transport.forward_out("localhost", 0, "localhost", remote_port)
    logger.debug("Tunnel open to localhost:%d on %s", remote_port, transport.target)
    return TunnelChannel(reader=reader, writer=writer, remote_port=remote_port)
