"""
Per-provider event translators.

A translator turns one RawFrame into zero or more StreamChunks. It keeps
no state of its own: anything that must survive across frames lives in
the state object returned by ``create_state()``, which the producing task
owns for the lifetime of one stream.

A malformed payload on a frame the translator recognizes raises
FrameParseError; the producer turns that into the terminal error chunk.
Frames the translator does not recognize are skipped.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ..exceptions import FrameParseError
from .events import (
    AnthropicContentBlockDelta,
    AnthropicEnvelope,
    AnthropicEvent,
    AnthropicMessageDelta,
    AnthropicMessageStart,
    GeminiStreamPayload,
    OpenAIStreamPayload,
)
from .models import RawFrame, StreamChunk, TokenAccumulator, Translation

DONE_MARKER = b"[DONE]"
TEXT_DELTA = "text_delta"

ModelT = TypeVar("ModelT", bound=BaseModel)

NOTHING = Translation(chunks=[])


def _parse(model: type[ModelT], frame: RawFrame, what: str) -> ModelT:
    try:
        return model.model_validate_json(frame.data)
    except ValidationError as e:
        raise FrameParseError(f"json parse error for {what}: {e}") from e


class StreamTranslator(ABC):
    """Maps one vendor's SSE frames onto normalized chunks."""

    name: str = "base"

    def create_state(self) -> Any:
        """Fresh per-stream state; None for stateless protocols."""
        return None

    @abstractmethod
    def translate(self, frame: RawFrame, state: Any) -> Translation:
        """Translate one frame. ``done=True`` ends the stream."""


class OpenAIDeltaTranslator(StreamTranslator):
    """OpenAI-compatible ``chat.completion.chunk`` stream."""

    name = "openai"

    def translate(self, frame: RawFrame, state: Any) -> Translation:
        if frame.data.strip() == DONE_MARKER:
            return Translation(chunks=[], done=True)

        payload = _parse(OpenAIStreamPayload, frame, "chat completion chunk")

        # Usage arrives in a final frame with an empty choices list
        if payload.usage is not None and not payload.choices:
            return Translation(chunks=[StreamChunk.of_metadata(payload.usage.as_metadata())])

        if payload.choices and payload.choices[0].delta.content:
            return Translation(chunks=[StreamChunk.of_text(payload.choices[0].delta.content)])

        return NOTHING


class GeminiCandidateTranslator(StreamTranslator):
    """Gemini ``streamGenerateContent?alt=sse`` stream."""

    name = "google"

    def translate(self, frame: RawFrame, state: Any) -> Translation:
        payload = _parse(GeminiStreamPayload, frame, "candidate chunk")

        chunks = [
            StreamChunk.of_text(part.text)
            for candidate in payload.candidates
            for part in candidate.content.parts
            if part.text
        ]
        if payload.usageMetadata is not None:
            chunks.append(StreamChunk.of_metadata(payload.usageMetadata.as_metadata()))

        return Translation(chunks=chunks)


class AnthropicEventTranslator(StreamTranslator):
    """
    Anthropic messages stream.

    The kind of a frame comes from its SSE event name. Frames without a
    known event name fall back to the ``type`` field inside the payload,
    and are skipped if that cannot be read either.
    """

    name = "anthropic"

    def create_state(self) -> TokenAccumulator:
        return TokenAccumulator()

    def resolve(self, frame: RawFrame) -> AnthropicEvent:
        kind = AnthropicEvent.from_name(frame.event)
        if kind is not AnthropicEvent.UNKNOWN:
            return kind

        try:
            envelope = AnthropicEnvelope.model_validate_json(frame.data)
        except ValidationError:
            return AnthropicEvent.UNKNOWN
        return AnthropicEvent.from_name(envelope.type)

    def translate(self, frame: RawFrame, state: TokenAccumulator) -> Translation:
        kind = self.resolve(frame)

        if kind is AnthropicEvent.MESSAGE_START:
            start = _parse(AnthropicMessageStart, frame, kind.value)
            state.input_tokens = start.message.usage.input_tokens
            state.output_tokens = start.message.usage.output_tokens
            return NOTHING

        if kind is AnthropicEvent.CONTENT_BLOCK_DELTA:
            block = _parse(AnthropicContentBlockDelta, frame, kind.value)
            if block.delta.type == TEXT_DELTA and block.delta.text:
                return Translation(chunks=[StreamChunk.of_text(block.delta.text)])
            return NOTHING

        if kind is AnthropicEvent.MESSAGE_DELTA:
            delta = _parse(AnthropicMessageDelta, frame, kind.value)
            if delta.usage is not None:
                state.output_tokens = delta.usage.output_tokens
            return NOTHING

        if kind is AnthropicEvent.MESSAGE_STOP:
            return Translation(chunks=[StreamChunk.of_metadata(state.as_metadata())], done=True)

        if kind in (
            AnthropicEvent.CONTENT_BLOCK_START,
            AnthropicEvent.CONTENT_BLOCK_STOP,
            AnthropicEvent.PING,
            AnthropicEvent.UNKNOWN,
        ):
            return NOTHING

        raise AssertionError(f"unhandled anthropic event kind: {kind}")
