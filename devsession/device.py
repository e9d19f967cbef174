"""Remote control session for one device.

State machine:
- IDLE -> CONNECTING on connect(); on_will_connect fires
- CONNECTING -> CONNECTED once the SFTP session is open and the home
  directory has been stat'ed; on_did_connect fires
- CONNECTING -> IDLE when any connect step fails; on_did_disconnect fires
  once and the original exception is re-raised
- CONNECTED -> IDLE on disconnect() or when the connection drops;
  on_did_disconnect fires

Only one connect() may be in flight per Device. Callers check
is_connecting/is_connected; nothing here guards against a second call.
"""

import logging
from collections.abc import Mapping
from enum import Enum
from types import TracebackType
from typing import TYPE_CHECKING

from devsession.config import HostKeyVerifier, Settings
from devsession.errors import NotConnected
from devsession.models import (
    CommandResult,
    DeviceEndpoint,
    DirectoryEntry,
    FileAttributes,
    PtyOptions,
    TunnelChannel,
)
from devsession.services.executors import OutputStreams, collect_output, stream_output
from devsession.services.filesystem import ProgressCallback, RemoteFilesystem
from devsession.services.recursive import mkdir_recursive, remove_recursive
from devsession.services.transport import PromptResponder, TransportSession
from devsession.services.tunnel import DAEMON_PORT, open_tunnel
from devsession.signals import Signal
from devsession.utils.platform import ScopeStyle, resolve_scope_style

if TYPE_CHECKING:
    from os import PathLike

    import asyncssh

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Connection state of a Device."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class Device:
    """A remote device reachable over SSH.

    Example:
        device = Device(DeviceEndpoint.from_manual_entry("ev3", "192.168.0.7"))
        device.on_did_disconnect.subscribe(refresh_tree)
        await device.connect()
        stdout, stderr = await device.create_exec_stream("brickrun ./main.py")
        async for line in stdout:
            print(line)
    """

    def __init__(
        self,
        endpoint: DeviceEndpoint,
        settings: Settings | None = None,
        *,
        responder: PromptResponder | None = None,
        scope_style: ScopeStyle | None = None,
        transport_factory: type[TransportSession] = TransportSession,
    ) -> None:
        """Initialize device.

        Args:
            endpoint: Connection descriptor from discovery or manual entry
            settings: Resolved settings (default: from environment)
            responder: Answers keyboard-interactive prompts
            scope_style: Link-local zone identifier style (default: this platform)
            transport_factory: Builds one TransportSession per connect attempt
        """
        self.endpoint = endpoint
        self.settings = settings if settings is not None else Settings.from_env()
        self.scope_style = scope_style or resolve_scope_style()
        self._responder = responder
        self._transport_factory = transport_factory
        self._host_keys = HostKeyVerifier(
            known_hosts_path=self.settings.known_hosts,
            strict_checking=self.settings.strict_host_key_checking,
        )

        self._state = SessionState.IDLE
        self._transport: TransportSession | None = None
        self._fs = RemoteFilesystem()
        self._home_attrs: FileAttributes | None = None

        self.on_will_connect = Signal("device.will_connect")
        self.on_did_connect = Signal("device.did_connect")
        self.on_did_disconnect = Signal("device.did_disconnect")

    # Lifecycle

    async def connect(self) -> None:
        """Connect, open the SFTP session and snapshot the home directory.

        Raises:
            ConnectionFailed: If the handshake or authentication fails
            Exception: Whatever a later connect step raised, unchanged
        """
        self._state = SessionState.CONNECTING
        self.on_will_connect.emit()

        transport = self._transport_factory(
            self.endpoint,
            self.settings,
            scope_style=self.scope_style,
            responder=self._responder,
            known_hosts=self._host_keys.get_known_hosts_path(),
        )
        self._transport = transport
        transport.on_did_disconnect.subscribe(lambda: self._transport_closed(transport))

        try:
            await transport.connect()
            sftp = await transport.open_sftp()
            home_attrs = await RemoteFilesystem(sftp).stat(self.home_directory_path)
            if self._transport is not transport:
                raise NotConnected(f"Disconnected from {self.name} while connecting")
        except BaseException as e:
            # Cancellation included: never leave a half-open session behind
            logger.error("Connecting to %s failed: %s", self.name, e)
            if self._transport is transport:
                self.disconnect()
            raise

        self._fs.attach(sftp)
        self._home_attrs = home_attrs
        self._state = SessionState.CONNECTED
        logger.info("Connected to %s (%s)", self.name, transport.target)
        self.on_did_connect.emit()

    def disconnect(self) -> None:
        """Tear down the SFTP session and connection.

        Safe to call in any state. on_did_disconnect fires on every call.
        """
        transport, self._transport = self._transport, None
        self._fs.detach()
        self._home_attrs = None
        self._state = SessionState.IDLE

        if transport is not None:
            transport.disconnect()
            logger.info("Disconnected from %s", self.name)
        self.on_did_disconnect.emit()

    async def close(self) -> None:
        """Disconnect and wait for the connection to finish closing."""
        transport = self._transport
        self.disconnect()
        if transport is not None:
            await transport.wait_closed()

    def dispose(self) -> None:
        """Disconnect and drop every lifecycle subscriber."""
        self.disconnect()
        self.on_will_connect.clear()
        self.on_did_connect.clear()
        self.on_did_disconnect.clear()

    def _transport_closed(self, transport: TransportSession) -> None:
        # Closures during connect are handled by connect() itself
        if transport is not self._transport or self._state is SessionState.CONNECTING:
            return
        logger.info("Connection to %s closed", self.name)
        self.disconnect()

    async def __aenter__(self) -> "Device":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # State

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_connecting(self) -> bool:
        return self._state is SessionState.CONNECTING

    @property
    def is_connected(self) -> bool:
        return self._state is SessionState.CONNECTED

    @property
    def name(self) -> str:
        return self.endpoint.name

    @property
    def username(self) -> str:
        return self.endpoint.username

    @property
    def home_directory_path(self) -> str:
        """Home directory path. Does not need a connection."""
        return self.endpoint.home_directory_path

    @property
    def home_directory_attributes(self) -> FileAttributes:
        """Home directory attributes captured at connect time.

        Raises:
            NotConnected: Unless connected
        """
        if self._home_attrs is None:
            raise NotConnected()
        return self._home_attrs

    def _require_transport(self) -> TransportSession:
        if self._transport is None or self._state is not SessionState.CONNECTED:
            raise NotConnected()
        return self._transport

    # Filesystem

    async def stat(self, path: str) -> FileAttributes:
        return await self._fs.stat(path)

    async def ls(self, path: str) -> list[DirectoryEntry]:
        return await self._fs.list(path)

    async def mkdir(self, path: str) -> None:
        await self._fs.mkdir(path)

    async def mkdir_p(self, path: str) -> None:
        """Create a directory and its missing parents (mkdir -p)."""
        await mkdir_recursive(self._fs, path)

    async def rmdir(self, path: str) -> None:
        await self._fs.rmdir(path)

    async def rm(self, path: str) -> None:
        """Remove a file or symlink."""
        await self._fs.unlink(path)

    async def rm_rf(self, path: str) -> None:
        """Remove a path and everything below it (rm -rf)."""
        await remove_recursive(self._fs, path)

    async def chmod(self, path: str, mode: int | str) -> None:
        await self._fs.chmod(path, mode)

    async def get(
        self,
        remote: str,
        local: "str | PathLike[str]",
        report_percentage: ProgressCallback | None = None,
    ) -> None:
        """Copy a remote file to the local host."""
        await self._fs.download(remote, local, on_progress=report_percentage)

    async def put(
        self,
        local: "str | PathLike[str]",
        remote: str,
        mode: int | str | None = None,
        report_percentage: ProgressCallback | None = None,
    ) -> None:
        """Copy a local file to the device."""
        await self._fs.upload(local, remote, mode=mode, on_progress=report_percentage)

    # Commands

    async def exec(
        self,
        command: str,
        env: Mapping[str, str] | None = None,
        pty: PtyOptions | None = None,
    ) -> "asyncssh.SSHClientProcess":
        """Execute a command on the device."""
        return await self._require_transport().exec(command, env=env, pty=pty)

    async def create_exec_stream(self, command: str) -> OutputStreams:
        """Execute a command and stream its stdout and stderr line by line."""
        process = await self.exec(command)
        return stream_output(process)

    async def run(self, command: str, env: Mapping[str, str] | None = None) -> CommandResult:
        """Execute a command and wait for it to finish."""
        process = await self.exec(command, env=env)
        return await collect_output(process)

    async def shell(
        self,
        pty: PtyOptions | None,
        env: Mapping[str, str] | None = None,
    ) -> "asyncssh.SSHClientProcess":
        """Start an interactive shell.

        Args:
            pty: Terminal settings, or None to skip pty allocation
            env: Environment (default: the configured environment)
        """
        if env is None:
            env = self.settings.env
        return await self._require_transport().shell(pty, env=env)

    # Tunnels

    async def open_tunnel(self, remote_port: int = DAEMON_PORT) -> TunnelChannel:
        """Open a raw forwarded channel to a daemon port on the device."""
        return await open_tunnel(self._require_transport(), remote_port)
