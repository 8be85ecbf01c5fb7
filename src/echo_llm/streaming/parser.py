"""
SSE decoding: a line reader over an async byte stream and a frame assembler.

Neither stage parses JSON; payload interpretation belongs to the
translators.
"""

from __future__ import annotations

import contextlib
from collections.abc import AsyncGenerator, AsyncIterator

import httpx

from ..exceptions import ReadError
from .models import RawFrame

EVENT_PREFIX = b"event: "
DATA_PREFIX = b"data: "


async def iter_lines(byte_stream: AsyncIterator[bytes]) -> AsyncGenerator[bytes]:
    """
    Split an async byte stream into lines.

    The ``\\n`` delimiter (and a preceding ``\\r``) is stripped. Trailing
    bytes without a delimiter are yielded as a last line at end of input.

    Raises:
        ReadError: If the underlying transport fails mid-stream.
    """
    buffer = bytearray()

    try:
        async with contextlib.aclosing(byte_stream):
            async for piece in byte_stream:
                buffer.extend(piece)
                start = 0
                while (newline := buffer.find(b"\n", start)) != -1:
                    yield _strip_cr(bytes(buffer[start:newline]))
                    start = newline + 1
                del buffer[:start]
    except (httpx.HTTPError, httpx.StreamError) as e:
        raise ReadError(f"read error: {e}") from e

    if buffer:
        yield _strip_cr(bytes(buffer))


def _strip_cr(line: bytes) -> bytes:
    return line[:-1] if line.endswith(b"\r") else line


class SSEFrameAssembler:
    """
    Groups SSE lines into frames.

    State is the current event name and the pending data buffer. The most
    recent ``event:`` line applies to the ``data:`` lines that follow it
    until a blank line ends the frame. Multi-line data is concatenated
    without a separator. Unknown fields are ignored.
    """

    def __init__(self) -> None:
        self._event = ""
        self._data = bytearray()

    def feed(self, line: bytes) -> RawFrame | None:
        """Consume one line; return a frame when the line completes one."""
        line = line.strip()

        if not line:
            return self._take()

        if line.startswith(EVENT_PREFIX):
            self._event = line[len(EVENT_PREFIX):].strip().decode("utf-8", "replace")
        elif line.startswith(DATA_PREFIX):
            self._data.extend(line[len(DATA_PREFIX):])
        return None

    def finish(self) -> RawFrame | None:
        """Flush a frame left pending when the input ended without a blank line."""
        return self._take()

    def _take(self) -> RawFrame | None:
        if not self._data:
            return None
        frame = RawFrame(event=self._event or None, data=bytes(self._data))
        self._event = ""
        self._data = bytearray()
        return frame


async def iter_frames(lines: AsyncIterator[bytes]) -> AsyncGenerator[RawFrame]:
    """Assemble frames from an async iterator of lines."""
    assembler = SSEFrameAssembler()
    async with contextlib.aclosing(lines):
        async for line in lines:
            frame = assembler.feed(line)
            if frame is not None:
                yield frame

    frame = assembler.finish()
    if frame is not None:
        yield frame


def parse_sse_stream(byte_stream: AsyncIterator[bytes]) -> AsyncGenerator[RawFrame]:
    """Full decoding pipeline: bytes in, frames out."""
    return iter_frames(iter_lines(byte_stream))
