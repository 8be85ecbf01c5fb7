"""
Provider implementations.

Each provider maps the unified message chain and call options onto one
vendor's HTTP API. ``PROVIDERS`` is the registry the client dispatches on.
"""

from __future__ import annotations

from .anthropic import AnthropicProvider
from .base import Provider
from .google import GoogleProvider
from .mock import MockProvider
from .openai import OpenAIProvider
from .voyage import VoyageProvider

PROVIDERS: dict[str, type[Provider]] = {
    "openai": OpenAIProvider,
    "openrouter": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "google": GoogleProvider,
    "voyage": VoyageProvider,
    "mock": MockProvider,
}

__all__ = [
    "PROVIDERS",
    "AnthropicProvider",
    "GoogleProvider",
    "MockProvider",
    "OpenAIProvider",
    "Provider",
    "VoyageProvider",
]
