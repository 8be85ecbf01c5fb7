"""
Stream channel adapter.

A streaming call runs its read/assemble/translate pipeline in a background
task that hands chunks to the caller one at a time over a ChunkChannel.
The caller only ever sees a StreamHandle and drains it with ``async for``.

Guarantees:
- the channel is closed exactly once, after the last chunk, on every exit
  path (completion, upstream error, parse error, cancellation, deadline)
- a terminal failure is delivered as one error chunk before the close
- cancellation and deadlines close the channel without an error chunk
- the response body is released exactly once
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable
from typing import Any

import structlog

from ..exceptions import ChannelClosedError, StreamingError
from .models import RawFrame, StreamChunk, StreamChunkType, StreamStats
from .parser import parse_sse_stream
from .translators import StreamTranslator

logger = structlog.get_logger(__name__)

_CLOSED = object()


class ChunkChannel:
    """
    Single-producer, single-consumer rendezvous channel.

    ``send`` returns only once the consumer has taken the chunk, so the
    producer can never run ahead of the reader. ``close`` never blocks.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, chunk: StreamChunk) -> None:
        if self._closed:
            raise ChannelClosedError("send on closed stream channel")
        self._queue.put_nowait(chunk)
        try:
            await self._queue.join()
        except asyncio.CancelledError:
            # Withdraw a chunk the consumer never took
            if not self._queue.empty():
                self._queue.get_nowait()
                self._queue.task_done()
            raise

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def receive(self) -> StreamChunk | None:
        """Next chunk, or None once the channel is closed and drained."""
        if self._drained:
            return None
        item = await self._queue.get()
        self._queue.task_done()
        if item is _CLOSED:
            self._drained = True
            return None
        return item


class StreamHandle:
    """
    Receive side of a streaming call.

    Iterate it to get chunks; iteration ends when the producer closes the
    channel. Leaving an ``async with`` block or calling ``aclose()`` cancels
    the producer and releases the connection.
    """

    def __init__(self, channel: ChunkChannel) -> None:
        self._channel = channel
        self._task: asyncio.Task[None] | None = None
        self.timed_out = False
        self.stats = StreamStats()

    def __aiter__(self) -> StreamHandle:
        return self

    async def __anext__(self) -> StreamChunk:
        chunk = await self._channel.receive()
        if chunk is None:
            raise StopAsyncIteration
        return chunk

    async def __aenter__(self) -> StreamHandle:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    @property
    def done(self) -> bool:
        return self._task is None or self._task.done()

    async def aclose(self) -> None:
        """Cancel the producer (if still running) and wait for it to finish."""
        if self._task is None:
            return
        if not self._task.done():
            self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task

    async def collect_text(self) -> str:
        """Drain the stream and join its text; raise the first error chunk."""
        parts: list[str] = []
        async for chunk in self:
            if chunk.error is not None:
                raise chunk.error
            if chunk.text:
                parts.append(chunk.text)
        return "".join(parts)


def start_stream(
    source: AsyncIterator[StreamChunk],
    *,
    on_close: Callable[[], Awaitable[None]] | None = None,
    timeout: float | None = None,
    log_context: dict[str, Any] | None = None,
    stats: StreamStats | None = None,
) -> StreamHandle:
    """
    Run ``source`` in a background task and return the handle draining it.

    Args:
        source: Async iterator producing chunks; may raise StreamingError
        on_close: Releases the underlying resource (e.g. the HTTP response)
        timeout: Deadline for the whole stream, in seconds
        log_context: Extra fields bound to the producer's log lines
        stats: Counters shared with the source, exposed as ``handle.stats``

    Must be called from within a running event loop.
    """
    channel = ChunkChannel()
    handle = StreamHandle(channel)
    if stats is not None:
        handle.stats = stats
    handle._task = asyncio.create_task(
        _produce(source, channel, handle, _once(on_close), timeout, log_context or {})
    )
    return handle


def _once(
    on_close: Callable[[], Awaitable[None]] | None,
) -> Callable[[], Awaitable[None]] | None:
    if on_close is None:
        return None
    called = False

    async def wrapper() -> None:
        nonlocal called
        if called:
            return
        called = True
        await on_close()

    return wrapper


async def _produce(
    source: AsyncIterator[StreamChunk],
    channel: ChunkChannel,
    handle: StreamHandle,
    on_close: Callable[[], Awaitable[None]] | None,
    timeout: float | None,
    log_context: dict[str, Any],
) -> None:
    log = logger.bind(**log_context)
    stats = handle.stats
    release = _once(functools.partial(_release, source, on_close, log))
    log.debug("Stream started", timeout=timeout)

    try:
        async with asyncio.timeout(timeout):
            async for chunk in source:
                await channel.send(chunk)
                stats.chunks += 1
                if chunk.chunk_type is StreamChunkType.ERROR:
                    break
    except TimeoutError:
        handle.timed_out = True
        log.warning("Stream deadline exceeded", timeout=timeout, chunks=stats.chunks)
    except StreamingError as e:
        log.error("Stream failed", error_type=type(e).__name__, error_message=str(e))
        # The connection goes back to the pool before the reader sees the error
        await release()
        await _send_error(channel, e)
    except asyncio.CancelledError:
        log.debug("Stream cancelled", chunks=stats.chunks)
        raise
    except Exception as e:
        log.exception("Unexpected stream failure")
        await release()
        await _send_error(
            channel,
            StreamingError(f"stream failed: {e}", **_error_context(log_context)),
        )
    finally:
        try:
            await release()
        finally:
            channel.close()
            log.debug(
                "Stream closed",
                chunks=stats.chunks,
                frames=stats.frames,
                skipped=stats.skipped,
            )


async def _release(
    source: AsyncIterator[StreamChunk],
    on_close: Callable[[], Awaitable[None]] | None,
    log: Any,
) -> None:
    try:
        if hasattr(source, "aclose"):
            await source.aclose()
        if on_close is not None:
            await on_close()
    except Exception as e:
        log.warning("Error releasing stream resources", error=str(e))


async def _send_error(channel: ChunkChannel, error: Exception) -> None:
    if not channel.closed:
        await channel.send(StreamChunk.of_error(error))


def _error_context(log_context: dict[str, Any]) -> dict[str, str]:
    return {
        key: str(log_context[key])
        for key in ("provider", "model")
        if key in log_context
    }


async def translate_frames(
    frames: AsyncIterator[RawFrame],
    translator: StreamTranslator,
    stats: StreamStats | None = None,
) -> AsyncGenerator[StreamChunk]:
    """Feed frames through a translator, in arrival order, until it is done."""
    state = translator.create_state()
    async with contextlib.aclosing(frames):
        async for frame in frames:
            if stats is not None:
                stats.frames += 1
            translation = translator.translate(frame, state)
            if stats is not None and not translation.chunks and not translation.done:
                stats.skipped += 1
            for chunk in translation.chunks:
                yield chunk
            if translation.done:
                return


def stream_sse(
    byte_stream: AsyncIterator[bytes],
    translator: StreamTranslator,
    *,
    on_close: Callable[[], Awaitable[None]] | None = None,
    timeout: float | None = None,
    log_context: dict[str, Any] | None = None,
) -> StreamHandle:
    """Start the full SSE pipeline over a byte stream."""
    context = {"translator": translator.name, **(log_context or {})}
    stats = StreamStats()
    source = translate_frames(parse_sse_stream(byte_stream), translator, stats)
    return start_stream(
        source,
        on_close=on_close,
        timeout=timeout,
        log_context=context,
        stats=stats,
    )
