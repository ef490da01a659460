"""Server-side stdio transport — newline-delimited JSON over stdin/stdout.

Reads never wait on writes and writes are serialised through a single lock,
so concurrent handlers cannot interleave the bytes of two messages.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import sys
import threading
from typing import IO, Any

# Longest accepted input line.
MAX_LINE_BYTES = 16 * 1024 * 1024


class StdioServerTransport:
    """Reads request lines from stdin and writes JSON lines to stdout.

    Both ends are injectable so tests can drive the transport with an
    ``asyncio.StreamReader`` and an in-memory buffer.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader | None = None,
        writer: IO[bytes] | None = None,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._write_lock = asyncio.Lock()
        self._closed = False

    async def connect(self) -> None:
        """Attach to the process's stdin/stdout unless streams were injected."""
        if self._writer is None:
            self._writer = sys.stdout.buffer
        if self._reader is not None:
            return

        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=MAX_LINE_BYTES)
        protocol = asyncio.StreamReaderProtocol(reader)
        try:
            await loop.connect_read_pipe(lambda: protocol, sys.stdin)
        except (ValueError, OSError):
            # Regular files and some consoles cannot be used as pipes.
            thread = threading.Thread(
                target=_pump_stdin,
                args=(loop, reader),
                name="fmcp-stdin",
                daemon=True,
            )
            thread.start()
        self._reader = reader

    async def receive(self) -> str | None:
        """Return the next non-empty line, or ``None`` at end of input.

        Raises:
            ValueError: The line exceeds :data:`MAX_LINE_BYTES`.
        """
        if self._reader is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        while True:
            raw = await self._reader.readline()
            if not raw:
                return None
            line = raw.strip()
            if line:
                return line.decode("utf-8", errors="replace")

    async def send(self, data: dict[str, Any]) -> None:
        """Write one JSON object followed by a newline."""
        if self._writer is None:
            msg = "Transport not connected"
            raise RuntimeError(msg)
        text = json.dumps(data, ensure_ascii=False, separators=(",", ":"), default=str)
        line = (text + "\n").encode("utf-8")
        async with self._write_lock:
            if self._closed:
                return
            await asyncio.to_thread(self._write, line)

    async def close(self) -> None:
        async with self._write_lock:
            self._closed = True

    def _write(self, line: bytes) -> None:
        assert self._writer is not None
        self._writer.write(line)
        self._writer.flush()


def _pump_stdin(loop: asyncio.AbstractEventLoop, reader: asyncio.StreamReader) -> None:
    """Blocking stdin reader feeding *reader* from a daemon thread."""
    stream = sys.stdin.buffer
    with contextlib.suppress(RuntimeError):  # loop already closed
        while True:
            chunk = stream.readline()
            if not chunk:
                loop.call_soon_threadsafe(reader.feed_eof)
                return
            loop.call_soon_threadsafe(reader.feed_data, chunk)
