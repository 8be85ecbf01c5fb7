"""
Response shapes of the non-streaming vendor endpoints.

Only the fields that are mapped into normalized responses are declared.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..streaming.events import GeminiCandidate, GeminiUsage, OpenAIUsage


class VendorError(BaseModel):
    message: str = ""
    type: str | None = None
    code: int | str | None = None


# OpenAI


class OpenAIChoiceMessage(BaseModel):
    content: str | None = None


class OpenAIChoice(BaseModel):
    message: OpenAIChoiceMessage = Field(default_factory=OpenAIChoiceMessage)


class OpenAIChatResponse(BaseModel):
    error: VendorError | None = None
    choices: list[OpenAIChoice] = Field(default_factory=list)
    usage: OpenAIUsage | None = None


class OpenAIEmbedding(BaseModel):
    embedding: list[float]
    index: int = 0


class OpenAIEmbeddingUsage(BaseModel):
    prompt_tokens: int = 0
    total_tokens: int = 0


class OpenAIEmbeddingResponse(BaseModel):
    error: VendorError | None = None
    data: list[OpenAIEmbedding] = Field(default_factory=list)
    usage: OpenAIEmbeddingUsage | None = None


# Anthropic


class AnthropicContentBlock(BaseModel):
    type: str = ""
    text: str = ""


class AnthropicResponseUsage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class AnthropicMessageResponse(BaseModel):
    error: VendorError | None = None
    content: list[AnthropicContentBlock] = Field(default_factory=list)
    stop_reason: str | None = None
    usage: AnthropicResponseUsage = Field(default_factory=AnthropicResponseUsage)


# Google


class GeminiResponse(BaseModel):
    error: VendorError | None = None
    candidates: list[GeminiCandidate] = Field(default_factory=list)
    usageMetadata: GeminiUsage | None = None


class GeminiEmbeddingValues(BaseModel):
    values: list[float] = Field(default_factory=list)


class GeminiEmbeddingResponse(BaseModel):
    error: VendorError | None = None
    embedding: GeminiEmbeddingValues = Field(default_factory=GeminiEmbeddingValues)


# Voyage


class VoyageEmbeddingUsage(BaseModel):
    total_tokens: int = 0


class VoyageEmbeddingResponse(BaseModel):
    error: VendorError | None = None
    data: list[OpenAIEmbedding] = Field(default_factory=list)
    model: str = ""
    usage: VoyageEmbeddingUsage | None = None


class VoyageRerankResult(BaseModel):
    index: int
    relevance_score: float
    document: str | None = None


class VoyageRerankResponse(BaseModel):
    error: VendorError | None = None
    results: list[VoyageRerankResult] = Field(default_factory=list)
    total_tokens: int = 0
    model: str = ""
