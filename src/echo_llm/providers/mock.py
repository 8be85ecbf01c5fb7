"""Offline provider that echoes its input, for tests and demos."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from ..messages import apply_system_override
from ..models import CallConfig, EmbeddingResponse, Message, RerankResponse, Response
from ..streaming import StreamChunk, StreamHandle, start_stream
from .base import Provider

DEFAULT_CHUNK_SIZE = 10


class MockProvider(Provider):
    """
    Deterministic provider that never touches the network.

    Completions render the message chain as ``[role]: content`` lines.
    Streams send a metadata chunk first, then the same text in fixed-size
    pieces, then close the channel.
    """

    name = "mock"

    @staticmethod
    def render(messages: list[Message], cfg: CallConfig) -> str:
        chain = apply_system_override(messages, cfg.system_message)
        return "\n".join(f"[{m.role_name}]: {m.content}" for m in chain)

    async def complete(self, messages: list[Message], cfg: CallConfig) -> Response:
        return Response(
            text=self.render(messages, cfg),
            metadata={"mock": True, "message_count": len(messages)},
        )

    async def stream_complete(self, messages: list[Message], cfg: CallConfig) -> StreamHandle:
        chunk_size = int(self.settings.get("chunk_size", DEFAULT_CHUNK_SIZE))
        if chunk_size <= 0:
            raise ValueError("mock.chunk_size must be positive")
        content = self.render(messages, cfg)
        metadata = {"mock": True, "message_count": len(messages)}

        async def chunks() -> AsyncGenerator[StreamChunk]:
            yield StreamChunk.of_metadata(metadata)
            for start in range(0, len(content), chunk_size):
                yield StreamChunk.of_text(content[start:start + chunk_size])

        return start_stream(
            chunks(),
            timeout=cfg.stream_timeout,
            log_context={"provider": self.name, "model": cfg.model},
        )

    async def get_embeddings(self, text: str, cfg: CallConfig) -> EmbeddingResponse:
        length = len(text)
        return EmbeddingResponse(
            embedding=[length / 100.0, 0.5, length / 1000.0],
            metadata={"mock": True, "text_length": length},
        )

    async def rerank(
        self, query: str, documents: list[str], cfg: CallConfig
    ) -> RerankResponse:
        query_len = len(query)
        scores = []
        for document in documents:
            doc_len = len(document)
            score = 1.0 - abs(query_len - doc_len) / (query_len + doc_len + 1)
            scores.append(max(score, 0.0))

        return RerankResponse(
            scores=scores,
            metadata={"mock": True, "query_len": query_len, "num_docs": len(documents)},
        )
