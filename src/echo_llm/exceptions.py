"""
Error hierarchy for echo_llm operations.

Every error carries the provider and model it was raised for, so callers
and logs can tell which backend failed:
- Call-time failures (bad message chain, unknown provider, HTTP status)
- Streaming failures delivered as error chunks (read errors, bad frames)
- Channel misuse (sending after close)
"""

from __future__ import annotations

import json

import httpx
from pydantic import ValidationError


class LLMError(Exception):
    """Base LLM error with rich context."""

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        model: str = "unknown",
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.model = model
        self.status_code = status_code
        self.response_data = response_data or {}


class ProviderError(LLMError):
    """Provider resolution or setup errors (unknown provider, no model)."""
    pass


class UnsupportedOperationError(ProviderError):
    """The provider does not implement the requested operation."""
    pass


class InvalidMessageError(LLMError, ValueError):
    """The message chain failed validation."""
    pass


class APIError(LLMError):
    """The provider answered, but the answer is unusable."""
    pass


class APIStatusError(APIError):
    """Non-success HTTP status returned before any body was consumed."""

    def __init__(
        self,
        message: str,
        status_code: int,
        body: str = "",
        **kwargs,
    ):
        super().__init__(message, status_code=status_code, **kwargs)
        self.body = body


class TransportError(LLMError):
    """Connection-level failure while sending a request."""
    pass


class StreamingError(LLMError):
    """Streaming-specific errors."""
    pass


class ReadError(StreamingError):
    """The response body failed mid-stream."""
    pass


class FrameParseError(StreamingError):
    """A frame of a recognized kind carried a malformed payload."""
    pass


class ChannelClosedError(StreamingError):
    """A chunk was sent on a channel that is already closed."""
    pass


class ErrorClassifier:
    """Maps exceptions onto coarse categories used in structured logs."""

    @staticmethod
    def classify(error: Exception) -> str:
        if isinstance(error, FrameParseError):
            return "frame_parse_error"
        if isinstance(error, ReadError):
            return "read_error"
        if isinstance(error, APIStatusError):
            return "status_error"
        if isinstance(error, InvalidMessageError | ValidationError):
            return "validation_error"
        if isinstance(error, json.JSONDecodeError):
            return "decode_error"
        if isinstance(error, TimeoutError | httpx.TimeoutException):
            return "timeout_error"
        if isinstance(error, TransportError | httpx.TransportError | OSError):
            return "connection_error"
        if isinstance(error, ProviderError):
            return "provider_error"
        if isinstance(error, LLMError):
            return "llm_error"
        return "unknown_error"
