"""
echo_llm: one async interface over several LLM vendors.

Completions, streaming completions, embeddings and reranking for OpenAI,
OpenRouter, Anthropic, Google, Voyage and an offline mock provider.
"""

from __future__ import annotations

from .client import EchoClient, parse_model_string
from .config import Configuration
from .exceptions import (
    APIError,
    APIStatusError,
    ChannelClosedError,
    FrameParseError,
    InvalidMessageError,
    LLMError,
    ProviderError,
    ReadError,
    StreamingError,
    TransportError,
    UnsupportedOperationError,
)
from .messages import quick_message, template_message, validate_messages
from .models import (
    CallConfig,
    EmbeddingResponse,
    Message,
    MessageRole,
    RerankResponse,
    Response,
)
from .streaming import StreamChunk, StreamHandle

__version__ = "0.1.0"

__all__ = [
    "APIError",
    "APIStatusError",
    "CallConfig",
    "ChannelClosedError",
    "Configuration",
    "EchoClient",
    "EmbeddingResponse",
    "FrameParseError",
    "InvalidMessageError",
    "LLMError",
    "Message",
    "MessageRole",
    "ProviderError",
    "ReadError",
    "RerankResponse",
    "Response",
    "StreamChunk",
    "StreamHandle",
    "StreamingError",
    "TransportError",
    "UnsupportedOperationError",
    "__version__",
    "parse_model_string",
    "quick_message",
    "template_message",
    "validate_messages",
]
