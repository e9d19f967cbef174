"""Session settings from environment variables.

Centralized environment variable parsing and validation.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any

from devsession.models import DeviceEndpoint

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Resolved session settings.

    Handles parsing, validation, and defaults for all env vars.
    """

    # Authentication
    password: str | None = field(default=None)

    # Connection
    connect_timeout: int = field(default=30)
    keepalive_interval: int = field(default=1)
    keepalive_count_max: int = field(default=5)
    known_hosts: str | None = field(default="none")
    strict_host_key_checking: bool = field(default=False)

    # Remote environment for exec and shell
    env: dict[str, str] = field(default_factory=dict)

    # Devices entered manually
    additional_devices: list[dict[str, Any]] = field(default_factory=list)

    # Logging
    log_level: str = field(default="INFO")
    log_colors: bool = field(default=True)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables.

        Returns:
            Settings instance with values from environment
        """
        return cls(
            password=os.getenv("DEVSESSION_PASSWORD"),
            connect_timeout=cls._get_int("DEVSESSION_CONNECT_TIMEOUT", 30),
            keepalive_interval=cls._get_int("DEVSESSION_KEEPALIVE_INTERVAL", 1),
            keepalive_count_max=cls._get_int("DEVSESSION_KEEPALIVE_COUNT_MAX", 5),
            known_hosts=os.getenv("DEVSESSION_KNOWN_HOSTS", "none"),
            strict_host_key_checking=cls._get_bool(
                "DEVSESSION_STRICT_HOST_KEY_CHECKING", False
            ),
            env=cls._get_env_map(),
            additional_devices=cls._get_additional_devices(),
            log_level=os.getenv("DEVSESSION_LOG_LEVEL", "INFO").upper(),
            log_colors=cls._get_bool("DEVSESSION_LOG_COLORS", True),
        )

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Get integer from environment.

        Args:
            key: Environment variable key
            default: Default value if not set

        Returns:
            Integer value from environment or default
        """
        value = os.getenv(key)
        if value is None:
            return default

        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid int for %s: %s, using default %d", key, value, default)
            return default

    @staticmethod
    def _get_bool(key: str, default: bool) -> bool:
        """Get boolean from environment."""
        value = os.getenv(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes", "on")

    @staticmethod
    def _get_env_map() -> dict[str, str]:
        """Parse DEVSESSION_ENV as comma separated KEY=VALUE pairs."""
        value = os.getenv("DEVSESSION_ENV", "").strip()
        if not value:
            return {}

        env: dict[str, str] = {}
        for item in value.split(","):
            item = item.strip()
            if not item:
                continue
            key, sep, val = item.partition("=")
            if not sep or not key.strip():
                logger.warning("Ignoring malformed DEVSESSION_ENV entry: %r", item)
                continue
            env[key.strip()] = val
        return env

    @staticmethod
    def _get_additional_devices() -> list[dict[str, Any]]:
        """Parse DEVSESSION_ADDITIONAL_DEVICES as a JSON list of objects."""
        value = os.getenv("DEVSESSION_ADDITIONAL_DEVICES", "").strip()
        if not value:
            return []

        try:
            devices = json.loads(value)
        except json.JSONDecodeError as e:
            logger.warning("Invalid JSON in DEVSESSION_ADDITIONAL_DEVICES: %s", e)
            return []

        if not isinstance(devices, list):
            logger.warning("DEVSESSION_ADDITIONAL_DEVICES must be a JSON list")
            return []
        return [d for d in devices if isinstance(d, dict)]


def endpoints_from_settings(settings: Settings) -> list[DeviceEndpoint]:
    """Build endpoints for the manually configured devices.

    Entries without a name or ipAddress are skipped with a warning.

    Args:
        settings: Resolved settings

    Returns:
        One IPv4 endpoint per valid entry, in configured order
    """
    endpoints = []
    for device in settings.additional_devices:
        name = device.get("name")
        address = device.get("ipAddress")
        if not name or not address:
            logger.warning("Skipping additional device without name/ipAddress: %r", device)
            continue
        endpoints.append(
            DeviceEndpoint.from_manual_entry(
                name=name,
                ip_address=address,
                username=device.get("username"),
                home_directory=device.get("homeDirectory"),
            )
        )
    return endpoints
