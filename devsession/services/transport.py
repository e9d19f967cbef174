"""Single SSH connection to a device.

One TransportSession is built per connection attempt and thrown away on
disconnect, so no timer or channel state leaks into the next attempt.

Keepalive:
- interval/count_max come from Settings (1s / 5 by default)
- disabled while the SFTP sub-session is negotiated, which can stall for many
  seconds on slow links (Bluetooth, USB gadget networking)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

import asyncssh

from devsession.config import Settings
from devsession.errors import ChannelError, ConnectionFailed, ForwardError
from devsession.models import AuthPrompt, DeviceEndpoint, PtyOptions
from devsession.signals import Signal
from devsession.utils.platform import ScopeStyle, connection_address, resolve_scope_style

logger = logging.getLogger(__name__)

PromptResponder = Callable[[AuthPrompt], Awaitable[str | None]]


class _SessionClient(asyncssh.SSHClient):
    """asyncssh client callbacks routed back to the owning session."""

    def __init__(self, session: "TransportSession") -> None:
        super().__init__()
        self._session = session

    def connection_lost(self, exc: Exception | None) -> None:
        self._session._connection_lost(exc)

    def kbdint_auth_requested(self) -> Any:
        if self._session.responder is None:
            # Lets asyncssh answer password prompts from the configured password
            return super().kbdint_auth_requested()
        return ""

    async def kbdint_challenge_received(
        self,
        name: str,
        instructions: str,
        lang: str,
        prompts: Sequence[tuple[str, bool]],
    ) -> list[str]:
        return await self._session._answer_prompts(prompts)


class TransportSession:
    """Wraps one asyncssh client connection and its SFTP sub-session."""

    def __init__(
        self,
        endpoint: DeviceEndpoint,
        settings: Settings,
        *,
        scope_style: ScopeStyle | None = None,
        responder: PromptResponder | None = None,
        known_hosts: str | None = None,
    ) -> None:
        """Initialize transport session.

        Args:
            endpoint: Device to connect to
            settings: Resolved connection settings
            scope_style: Link-local zone identifier style
            responder: Async callback answering keyboard-interactive prompts
            known_hosts: Path to known_hosts file, or None to skip verification
        """
        self.endpoint = endpoint
        self.settings = settings
        self.scope_style = scope_style or resolve_scope_style()
        self.responder = responder
        self.known_hosts = known_hosts

        self.on_will_connect = Signal("transport.will_connect")
        self.on_did_connect = Signal("transport.did_connect")
        self.on_did_disconnect = Signal("transport.did_disconnect")

        self._conn: asyncssh.SSHClientConnection | None = None
        self._sftp: asyncssh.SFTPClient | None = None
        self._ready = False
        self._closed = False

    @property
    def address(self) -> str:
        """Address handed to asyncssh, zone identifier included."""
        return connection_address(self.endpoint, self.scope_style)

    @property
    def target(self) -> str:
        return f"{self.endpoint.username}@{self.endpoint.address}:{self.endpoint.port}"

    @property
    def is_ready(self) -> bool:
        """Check if the handshake completed and the connection is still open."""
        return self._ready and not self._closed

    async def connect(self) -> None:
        """Open the connection and authenticate.

        Raises:
            ConnectionFailed: On handshake, authentication or timeout failure
        """
        address = self.address
        self.on_will_connect.emit()
        logger.info(
            "Opening SSH connection to %s (%s@%s:%d)",
            self.endpoint.name,
            self.endpoint.username,
            address,
            self.endpoint.port,
        )

        try:
            self._conn = await asyncssh.connect(
                address,
                port=self.endpoint.port,
                username=self.endpoint.username,
                password=self.settings.password,
                known_hosts=self.known_hosts,
                client_factory=lambda: _SessionClient(self),
                kbdint_auth=True,
                keepalive_interval=self.settings.keepalive_interval,
                keepalive_count_max=self.settings.keepalive_count_max,
                connect_timeout=self.settings.connect_timeout,
            )
        except asyncio.CancelledError:
            self.disconnect()
            raise
        except Exception as e:
            logger.error("SSH connection to %s failed: %s", self.target, e)
            self.disconnect()
            raise ConnectionFailed(self.target, e) from e

        if self._closed:
            # Remote side hung up between auth and our resumption
            self._conn.close()
            raise ConnectionFailed(self.target, ConnectionResetError("Connection closed"))

        self._ready = True
        logger.info("SSH connection established to %s", self.target)
        self.on_did_connect.emit()

    async def _answer_prompts(self, prompts: Sequence[tuple[str, bool]]) -> list[str]:
        """Present each prompt to the responder in order.

        A cancelled prompt (None) is answered with an empty string instead of
        aborting authentication.
        """
        answers: list[str] = []
        if self.responder is None:
            return answers

        for text, echo in prompts:
            answer = await self.responder(AuthPrompt(text=text, is_secret=not echo))
            if answer is None:
                logger.debug("Prompt %r cancelled, sending empty response", text)
                answer = ""
            answers.append(answer)
        return answers

    def _require_connection(self) -> asyncssh.SSHClientConnection:
        if self._conn is None or not self.is_ready:
            raise ChannelError(f"Connection to {self.target} is not ready")
        return self._conn

    async def open_sftp(self) -> asyncssh.SFTPClient:
        """Open the SFTP sub-session.

        Keepalive is disabled until negotiation finishes.

        Raises:
            ChannelError: If the connection is not ready or SFTP is refused
        """
        conn = self._require_connection()

        conn.set_keepalive(0)
        try:
            self._sftp = await conn.start_sftp_client()
        except asyncssh.Error as e:
            raise ChannelError(f"Cannot open SFTP session on {self.target}: {e}") from e
        finally:
            if not self._closed:
                conn.set_keepalive(
                    self.settings.keepalive_interval,
                    self.settings.keepalive_count_max,
                )

        if self._closed:
            self._sftp.exit()
            self._sftp = None
            raise ChannelError(f"Connection to {self.target} closed while opening SFTP")

        logger.debug("SFTP session open on %s", self.target)
        return self._sftp

    async def exec(
        self,
        command: str,
        env: Mapping[str, str] | None = None,
        pty: PtyOptions | None = None,
    ) -> asyncssh.SSHClientProcess:
        """Start a command on the device.

        Returns:
            Process with binary stdin, stdout and stderr streams

        Raises:
            ChannelError: If the connection is not ready or the channel is refused
        """
        conn = self._require_connection()
        logger.debug("Executing on %s: %s", self.target, command)
        try:
            return await conn.create_process(
                command,
                env=dict(env) if env else (),
                encoding=None,
                **_pty_options(pty),
            )
        except asyncssh.Error as e:
            raise ChannelError(f"Cannot execute {command!r} on {self.target}: {e}") from e

    async def shell(
        self,
        pty: PtyOptions | None,
        env: Mapping[str, str] | None = None,
    ) -> asyncssh.SSHClientProcess:
        """Start an interactive shell.

        Args:
            pty: Terminal settings, or None to skip pty allocation
            env: Environment variables for the shell

        Raises:
            ChannelError: If the connection is not ready or the channel is refused
        """
        conn = self._require_connection()
        logger.debug("Starting shell on %s (pty=%s)", self.target, pty is not None)
        try:
            return await conn.create_process(
                env=dict(env) if env else (),
                encoding=None,
                **_pty_options(pty),
            )
        except asyncssh.Error as e:
            raise ChannelError(f"Cannot start shell on {self.target}: {e}") from e

    async def forward_out(
        self,
        src_host: str,
        src_port: int,
        dst_host: str,
        dst_port: int,
    ) -> tuple["asyncssh.SSHReader[bytes]", "asyncssh.SSHWriter[bytes]"]:
        """Open a direct TCP/IP channel to dst_host:dst_port on the device side.

        Raises:
            ChannelError: If the connection is not ready
            ForwardError: If the device refuses the forward
        """
        conn = self._require_connection()
        try:
            return await conn.open_connection(
                dst_host,
                dst_port,
                orig_host=src_host,
                orig_port=src_port,
            )
        except asyncssh.Error as e:
            raise ForwardError(
                f"Forward to {dst_host}:{dst_port} refused by {self.target}: {e}"
            ) from e

    def disconnect(self) -> None:
        """End the SFTP sub-session and the connection.

        Safe to call from any state and more than once. on_did_disconnect
        fires on the first call only.
        """
        if self._closed:
            return
        self._closed = True
        self._ready = False

        if self._sftp is not None:
            self._sftp.exit()
            self._sftp = None
        if self._conn is not None:
            logger.info("Closing SSH connection to %s", self.target)
            self._conn.close()

        self.on_did_disconnect.emit()

    async def wait_closed(self) -> None:
        """Wait for the underlying connection to finish closing."""
        if self._conn is not None:
            await self._conn.wait_closed()

    def _connection_lost(self, exc: Exception | None) -> None:
        if self._closed:
            return
        if exc is not None:
            logger.warning("Connection to %s lost: %s", self.target, exc)
        else:
            logger.info("Connection to %s closed by remote", self.target)
        self.disconnect()


def _pty_options(pty: PtyOptions | None) -> dict[str, Any]:
    """asyncssh create_process keyword arguments for a pty request."""
    if pty is None:
        return {"request_pty": False}
    options: dict[str, Any] = {
        "term_type": pty.term_type,
        "term_size": pty.term_size,
    }
    if pty.modes:
        options["term_modes"] = pty.modes
    return options
