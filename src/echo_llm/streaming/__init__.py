"""
Streaming support for echo_llm.

This package contains:
- SSE decoding (line reader and frame assembler)
- Per-provider event translators
- The channel adapter that runs a stream in a background task
"""

from __future__ import annotations

from .channel import ChunkChannel, StreamHandle, start_stream, stream_sse, translate_frames
from .models import RawFrame, StreamChunk, StreamChunkType, TokenAccumulator, Translation
from .parser import SSEFrameAssembler, iter_frames, iter_lines, parse_sse_stream
from .translators import (
    AnthropicEventTranslator,
    GeminiCandidateTranslator,
    OpenAIDeltaTranslator,
    StreamTranslator,
)

__all__ = [
    "AnthropicEventTranslator",
    "ChunkChannel",
    "GeminiCandidateTranslator",
    "OpenAIDeltaTranslator",
    "RawFrame",
    "SSEFrameAssembler",
    "StreamChunk",
    "StreamChunkType",
    "StreamHandle",
    "StreamTranslator",
    "TokenAccumulator",
    "Translation",
    "iter_frames",
    "iter_lines",
    "parse_sse_stream",
    "start_stream",
    "stream_sse",
    "translate_frames",
]
