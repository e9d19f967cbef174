"""Path and input validation utilities."""

import posixpath
import re
from typing import Final

from devsession.errors import InvalidArgument

IPV4_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")


def require_absolute(path: str) -> str:
    """Check that a remote path is absolute.

    Args:
        path: Remote POSIX path

    Returns:
        The path, unchanged

    Raises:
        InvalidArgument: If path is empty, relative or contains a null byte
    """
    if not path:
        raise InvalidArgument("Path cannot be empty")
    if "\x00" in path:
        raise InvalidArgument(f"Path contains null byte: {path!r}")
    if not posixpath.isabs(path):
        raise InvalidArgument(f"The supplied file path must be absolute: {path}")
    return path


def validate_ipv4(address: str) -> str:
    """Validate a manually entered IPv4 address.

    Only the dotted-quad shape is checked, octet ranges are left to the
    resolver.

    Raises:
        ValueError: If address is not a valid IP address
    """
    address = address.strip()
    if not IPV4_PATTERN.match(address):
        raise ValueError(f"Not a valid IP address: {address!r}")
    return address
