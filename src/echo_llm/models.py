"""
Core dataclasses shared by every provider.

This module provides the foundational dataclasses for LLM interactions:
- Message structures and roles
- Per-call options
- Normalized response models
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

Metadata = dict[str, Any]


class MessageRole(Enum):
    """Roles accepted in a message chain."""
    SYSTEM = "system"
    USER = "user"
    AGENT = "agent"


@dataclass(frozen=True)
class Message:
    """One entry of a role-tagged message chain."""
    role: MessageRole | str
    content: str

    @property
    def role_name(self) -> str:
        if isinstance(self.role, MessageRole):
            return self.role.value
        return self.role


@dataclass(frozen=True)
class CallConfig:
    """Options for a single call; unset fields fall back to client defaults."""
    model: str | None = None
    base_url: str | None = None
    endpoint: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    system_message: str | None = None
    stream_timeout: float | None = None

    def merge(self, **overrides: Any) -> CallConfig:
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


@dataclass(frozen=True)
class Response:
    """Normalized completion response."""
    text: str
    metadata: Metadata = field(default_factory=dict)


@dataclass(frozen=True)
class EmbeddingResponse:
    """Normalized embedding response."""
    embedding: list[float]
    metadata: Metadata = field(default_factory=dict)


@dataclass(frozen=True)
class RerankResponse:
    """Relevance scores in the same order as the input documents."""
    scores: list[float]
    metadata: Metadata = field(default_factory=dict)
