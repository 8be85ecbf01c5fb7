"""Voyage AI embeddings and reranking."""

from __future__ import annotations

from ..models import CallConfig, EmbeddingResponse, RerankResponse
from .base import Provider
from .schemas import VoyageEmbeddingResponse, VoyageRerankResponse

DEFAULT_EMBEDDING_MODEL = "voyage-3"
DEFAULT_RERANK_MODEL = "rerank-2.5"


class VoyageProvider(Provider):
    """Embedding-only vendor; chat operations are unsupported."""

    name = "voyage"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    async def get_embeddings(self, text: str, cfg: CallConfig) -> EmbeddingResponse:
        model = cfg.model or DEFAULT_EMBEDDING_MODEL
        data = await self.transport.post_json(
            self._url(cfg, "embeddings_url"),
            self._headers(),
            {"input": text, "model": model},
            provider=self.name,
            model=model,
        )
        parsed: VoyageEmbeddingResponse = self._validate(VoyageEmbeddingResponse, data, cfg)
        self._raise_body_error(parsed.error, cfg)
        if not parsed.data:
            raise self._format_error("no embedding data in response", cfg)

        metadata = {}
        if parsed.usage:
            metadata = {"total_tokens": parsed.usage.total_tokens, "model": parsed.model}
        return EmbeddingResponse(embedding=parsed.data[0].embedding, metadata=metadata)

    async def rerank(
        self, query: str, documents: list[str], cfg: CallConfig
    ) -> RerankResponse:
        model = cfg.model or DEFAULT_RERANK_MODEL
        data = await self.transport.post_json(
            self._url(cfg, "rerank_url"),
            self._headers(),
            {"query": query, "documents": documents, "model": model},
            provider=self.name,
            model=model,
        )
        parsed: VoyageRerankResponse = self._validate(VoyageRerankResponse, data, cfg)
        self._raise_body_error(parsed.error, cfg)

        # Results come sorted by relevance; scores follow input order
        scores = [0.0] * len(documents)
        for result in parsed.results:
            if 0 <= result.index < len(scores):
                scores[result.index] = result.relevance_score

        return RerankResponse(
            scores=scores,
            metadata={"total_tokens": parsed.total_tokens, "model": parsed.model},
        )
