"""Utilities for devsession."""

from devsession.utils.console import ColorfulFormatter, configure_logging
from devsession.utils.platform import ScopeStyle, connection_address, resolve_scope_style
from devsession.utils.validation import require_absolute, validate_ipv4

__all__ = [
    "ColorfulFormatter",
    "configure_logging",
    "connection_address",
    "require_absolute",
    "resolve_scope_style",
    "ScopeStyle",
    "validate_ipv4",
]
