"""Device endpoint data model."""

from dataclasses import dataclass
from typing import Literal

DEFAULT_USERNAME = "robot"


@dataclass(frozen=True)
class DeviceEndpoint:
    """Connection descriptor for one device.

    Produced by discovery or by manual entry. The interface fields are only
    used for IPv6 link-local addresses.
    """

    name: str
    address: str
    username: str = DEFAULT_USERNAME
    address_family: Literal["IPv4", "IPv6"] = "IPv4"
    port: int = 22
    interface_index: int | None = None
    interface_name: str | None = None
    home_directory: str | None = None

    @property
    def home_directory_path(self) -> str:
        """Home directory on the device.

        Returns:
            Configured override, or /home/<username>
        """
        return self.home_directory or f"/home/{self.username}"

    @property
    def is_link_local(self) -> bool:
        """Check if address is an IPv6 link-local address."""
        return self.address_family == "IPv6" and self.address.lower().startswith("fe80::")

    @classmethod
    def from_manual_entry(
        cls,
        name: str,
        ip_address: str,
        username: str | None = None,
        home_directory: str | None = None,
    ) -> "DeviceEndpoint":
        """Create an endpoint for a device entered by IP address.

        Args:
            name: Display name
            ip_address: IPv4 address of the device
            username: Login name (default: robot)
            home_directory: Home directory override

        Returns:
            IPv4 endpoint on port 22
        """
        user = username or DEFAULT_USERNAME
        return cls(
            name=name,
            address=ip_address,
            username=user,
            address_family="IPv4",
            port=22,
            home_directory=home_directory or f"/home/{user}",
        )

    @classmethod
    def usb_default(cls) -> "DeviceEndpoint":
        """Endpoint for a device attached over USB networking."""
        return cls(
            name="ev3dev device (USB)",
            address="ev3dev.local",
            username=DEFAULT_USERNAME,
            address_family="IPv6",
            port=22,
            home_directory=f"/home/{DEFAULT_USERNAME}",
        )
