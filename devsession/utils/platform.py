"""Link-local address scoping.

IPv6 link-local addresses need a zone identifier to be routable. Windows
expects the interface index, everyone else the interface name. The style is
resolved once at startup and passed to each transport.
"""

import sys
from enum import Enum

from devsession.errors import InvalidArgument
from devsession.models import DeviceEndpoint


class ScopeStyle(Enum):
    """How to qualify a link-local address with its interface."""

    INDEX = "index"
    NAME = "name"


def resolve_scope_style(platform: str | None = None) -> ScopeStyle:
    """Pick the zone identifier style for a platform.

    Args:
        platform: sys.platform value (default: current interpreter)
    """
    platform = sys.platform if platform is None else platform
    return ScopeStyle.INDEX if platform == "win32" else ScopeStyle.NAME


def connection_address(endpoint: DeviceEndpoint, style: ScopeStyle) -> str:
    """Get the address to hand to the transport.

    Args:
        endpoint: Device endpoint
        style: Zone identifier style

    Returns:
        Address with %<zone> appended for link-local IPv6, otherwise unchanged
    """
    if not endpoint.is_link_local:
        return endpoint.address

    if style is ScopeStyle.INDEX:
        zone = endpoint.interface_index
    else:
        zone = endpoint.interface_name

    if zone is None or zone == "":
        raise InvalidArgument(
            f"Link-local address {endpoint.address} needs an interface "
            f"{style.value} to be routable"
        )
    return f"{endpoint.address}%{zone}"
