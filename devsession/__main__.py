"""Run one command on a device and stream its output.

Usage:
    python -m devsession ADDRESS COMMAND [ARG ...]

Connection settings come from DEVSESSION_* environment variables.
"""

import asyncio
import getpass
import logging
import shlex
import sys
from typing import TextIO

from devsession.config import Settings
from devsession.device import Device
from devsession.errors import DeviceError
from devsession.models import AuthPrompt, DeviceEndpoint
from devsession.services.executors import LineStream, stream_output
from devsession.utils.console import configure_logging
from devsession.utils.validation import validate_ipv4

logger = logging.getLogger(__name__)


async def _ask(prompt: AuthPrompt) -> str | None:
    """Answer a keyboard-interactive prompt on the terminal."""
    reader = getpass.getpass if prompt.is_secret else input
    try:
        return await asyncio.to_thread(reader, prompt.text)
    except EOFError:
        return None


async def _pump(stream: LineStream, out: TextIO) -> None:
    async for line in stream:
        print(line, file=out, flush=True)


async def run(address: str, command: str, settings: Settings) -> int:
    """Connect, run command, print its output.

    Returns:
        Remote exit status, or 1 when the session fails
    """
    endpoint = DeviceEndpoint.from_manual_entry(f"ev3dev device ({address})", address)
    device = Device(endpoint, settings, responder=_ask)

    try:
        async with device:
            process = await device.exec(command, env=settings.env or None)
            stdout, stderr = stream_output(process)
            await asyncio.gather(_pump(stdout, sys.stdout), _pump(stderr, sys.stderr))
            await process.wait()
            return process.returncode if process.returncode is not None else 1
    except DeviceError as e:
        logger.error("%s", e)
        return 1


def main(argv: list[str] | None = None) -> int:
    """Command line entry point."""
    args = sys.argv[1:] if argv is None else argv
    if len(args) < 2:
        print(__doc__, file=sys.stderr)
        return 2

    settings = Settings.from_env()
    configure_logging(settings.log_level, settings.log_colors)

    try:
        address = validate_ipv4(args[0])
    except ValueError as e:
        logger.error("%s", e)
        return 2

    command = shlex.join(args[1:])
    return asyncio.run(run(address, command, settings))


if __name__ == "__main__":
    sys.exit(main())
