"""Configuration for devsession.

- Settings: Environment variable configuration
- HostKeyVerifier: known_hosts resolution
"""

from devsession.config.host_keys import HostKeyVerifier
from devsession.config.settings import Settings, endpoints_from_settings

__all__ = ["HostKeyVerifier", "Settings", "endpoints_from_settings"]
