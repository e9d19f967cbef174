"""Remote command output handling.

stdout and stderr of an executed command are exposed as two independent
lazy line sequences. They are not ordered relative to each other.
"""

import asyncio
import logging
import re
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from devsession.models import CommandResult

if TYPE_CHECKING:
    import asyncssh

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096

# Same line endings as a terminal: \r\n, \n, or a lone \r
LINE_BREAK = re.compile(rb"\r\n|\r|\n")


def _decode(data: bytes | str | None) -> str:
    """Decode channel output, tolerating invalid UTF-8."""
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


class LineStream:
    """Lines read from one output stream of a remote process.

    Lazy, finite and non-restartable: iteration starts reading, ends when
    the stream reaches EOF, and can only happen once.
    """

    def __init__(self, reader: Any, name: str, chunk_size: int = READ_CHUNK_SIZE) -> None:
        """Initialize line stream.

        Args:
            reader: Stream with an async read(n) returning b'' at EOF
            name: Stream label used in log messages (stdout/stderr)
            chunk_size: Bytes requested per read
        """
        self._reader = reader
        self.name = name
        self._chunk_size = chunk_size
        self._started = False

    def __aiter__(self) -> AsyncIterator[str]:
        if self._started:
            raise RuntimeError(f"{self.name} line stream can only be iterated once")
        self._started = True
        return self._lines()

    async def _lines(self) -> AsyncIterator[str]:
        # Pieces of the unfinished line; only new chunks are scanned
        pending: list[bytes] = []
        after_cr = False
        while True:
            chunk = await self._reader.read(self._chunk_size)
            if not chunk:
                break
            if isinstance(chunk, str):
                chunk = chunk.encode("utf-8")
            if after_cr and chunk.startswith(b"\n"):
                # Second half of a \r\n split across reads
                chunk = chunk[1:]
            after_cr = chunk.endswith(b"\r")

            start = 0
            for match in LINE_BREAK.finditer(chunk):
                pending.append(chunk[start : match.start()])
                yield _decode(b"".join(pending))
                pending = []
                start = match.end()
            if start < len(chunk):
                pending.append(chunk[start:])

        # Trailing output without a final newline
        if pending:
            yield _decode(b"".join(pending))
        logger.debug("%s stream closed", self.name)

    async def collect(self) -> list[str]:
        """Read every remaining line."""
        return [line async for line in self]


@dataclass
class OutputStreams:
    """Line streams of one executed command."""

    stdout: LineStream
    stderr: LineStream

    def __iter__(self) -> Any:
        # Allows `stdout, stderr = await device.create_exec_stream(cmd)`
        return iter((self.stdout, self.stderr))


def stream_output(process: "asyncssh.SSHClientProcess") -> OutputStreams:
    """Split the output of a started process into line streams."""
    return OutputStreams(
        stdout=LineStream(process.stdout, "stdout"),
        stderr=LineStream(process.stderr, "stderr"),
    )


async def collect_output(process: "asyncssh.SSHClientProcess") -> CommandResult:
    """Read a process to completion.

    Returns:
        CommandResult with stdout, stderr, and return code.
    """
    streams = stream_output(process)
    stdout_lines, stderr_lines = await asyncio.gather(
        streams.stdout.collect(),
        streams.stderr.collect(),
    )
    await process.wait()

    # None when the process was killed by a signal
    returncode = process.returncode if process.returncode is not None else -1

    return CommandResult(
        output="\n".join(stdout_lines),
        error="\n".join(stderr_lines),
        returncode=returncode,
    )
