"""
Streaming dataclasses: raw SSE frames, normalized chunks, per-stream state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple


class StreamChunkType(Enum):
    """Types of streaming chunks."""
    TEXT = "text"
    METADATA = "metadata"
    ERROR = "error"
    EMPTY = "empty"


@dataclass(frozen=True)
class RawFrame:
    """One assembled SSE message."""
    event: str | None
    data: bytes


@dataclass(frozen=True)
class StreamChunk:
    """Normalized chunk handed to the caller. One field is populated."""
    text: str | None = None
    metadata: dict[str, Any] | None = None
    error: Exception | None = None

    @classmethod
    def of_text(cls, text: str) -> StreamChunk:
        return cls(text=text)

    @classmethod
    def of_metadata(cls, metadata: dict[str, Any]) -> StreamChunk:
        return cls(metadata=metadata)

    @classmethod
    def of_error(cls, error: Exception) -> StreamChunk:
        return cls(error=error)

    @property
    def chunk_type(self) -> StreamChunkType:
        if self.error is not None:
            return StreamChunkType.ERROR
        if self.metadata is not None:
            return StreamChunkType.METADATA
        if self.text is not None:
            return StreamChunkType.TEXT
        return StreamChunkType.EMPTY


class Translation(NamedTuple):
    """Result of translating one frame."""
    chunks: list[StreamChunk]
    done: bool = False


@dataclass
class TokenAccumulator:
    """Running token counts for one stream of the multi-event protocol."""
    input_tokens: int = 0
    output_tokens: int = 0

    def as_metadata(self) -> dict[str, Any]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
        }


@dataclass
class StreamStats:
    """Counters kept by the producing task, for the closing log line."""
    frames: int = 0
    chunks: int = 0
    skipped: int = 0
