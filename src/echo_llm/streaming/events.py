"""
Vendor stream payload shapes.

Only the fields the translators read are declared; everything else in a
payload is ignored.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

# OpenAI-compatible delta stream


class OpenAIDelta(BaseModel):
    content: str | None = None


class OpenAIStreamChoice(BaseModel):
    delta: OpenAIDelta = Field(default_factory=OpenAIDelta)


class OpenAIUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def as_metadata(self) -> dict[str, int]:
        return {
            "total_tokens": self.total_tokens,
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
        }


class OpenAIStreamPayload(BaseModel):
    choices: list[OpenAIStreamChoice] = Field(default_factory=list)
    usage: OpenAIUsage | None = None


# Gemini candidate stream


class GeminiPart(BaseModel):
    text: str = ""


class GeminiContent(BaseModel):
    parts: list[GeminiPart] = Field(default_factory=list)


class GeminiCandidate(BaseModel):
    content: GeminiContent = Field(default_factory=GeminiContent)


class GeminiUsage(BaseModel):
    promptTokenCount: int = 0
    candidatesTokenCount: int = 0
    totalTokenCount: int = 0

    def as_metadata(self) -> dict[str, int]:
        return {
            "total_tokens": self.totalTokenCount,
            "prompt_tokens": self.promptTokenCount,
            "completion_tokens": self.candidatesTokenCount,
        }


class GeminiStreamPayload(BaseModel):
    candidates: list[GeminiCandidate] = Field(default_factory=list)
    usageMetadata: GeminiUsage | None = None


# Anthropic named-event stream


class AnthropicEvent(Enum):
    """Event kinds of the Anthropic messages stream."""
    MESSAGE_START = "message_start"
    CONTENT_BLOCK_START = "content_block_start"
    CONTENT_BLOCK_DELTA = "content_block_delta"
    CONTENT_BLOCK_STOP = "content_block_stop"
    MESSAGE_DELTA = "message_delta"
    MESSAGE_STOP = "message_stop"
    PING = "ping"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, name: str | None) -> AnthropicEvent:
        if not name:
            return cls.UNKNOWN
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN


class AnthropicEnvelope(BaseModel):
    """Just the ``type`` discriminator, for frames without an event line."""
    type: str = ""


class AnthropicUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class AnthropicStartMessage(BaseModel):
    usage: AnthropicUsage = Field(default_factory=AnthropicUsage)


class AnthropicMessageStart(BaseModel):
    message: AnthropicStartMessage = Field(default_factory=AnthropicStartMessage)


class AnthropicTextDelta(BaseModel):
    type: str = ""
    text: str = ""


class AnthropicContentBlockDelta(BaseModel):
    index: int = 0
    delta: AnthropicTextDelta = Field(default_factory=AnthropicTextDelta)


class AnthropicDeltaUsage(BaseModel):
    output_tokens: int = 0


class AnthropicMessageDelta(BaseModel):
    usage: AnthropicDeltaUsage | None = None
