"""Base class for provider implementations."""

from __future__ import annotations

from abc import ABC
from typing import Any

from pydantic import BaseModel, ValidationError

from ..exceptions import APIError, ProviderError, UnsupportedOperationError
from ..http import HTTPTransport
from ..models import CallConfig, EmbeddingResponse, Message, RerankResponse, Response
from ..streaming import StreamHandle


class Provider(ABC):
    """
    One LLM vendor behind the unified call shape.

    Providers are stateless apart from their credentials and settings; every
    per-call option arrives in a resolved CallConfig. Operations a vendor
    does not offer raise UnsupportedOperationError.
    """

    name: str = "base"

    def __init__(
        self,
        api_key: str,
        transport: HTTPTransport | None,
        settings: dict[str, Any] | None = None,
        name: str | None = None,
    ) -> None:
        self.api_key = api_key
        self.transport = transport
        self.settings = settings or {}
        if name is not None:
            self.name = name

    async def complete(self, messages: list[Message], cfg: CallConfig) -> Response:
        raise self._unsupported("chat completions")

    async def stream_complete(self, messages: list[Message], cfg: CallConfig) -> StreamHandle:
        raise self._unsupported("streaming completions")

    async def get_embeddings(self, text: str, cfg: CallConfig) -> EmbeddingResponse:
        raise self._unsupported("embeddings")

    async def rerank(
        self, query: str, documents: list[str], cfg: CallConfig
    ) -> RerankResponse:
        raise self._unsupported("reranking")

    def _unsupported(self, operation: str) -> UnsupportedOperationError:
        return UnsupportedOperationError(
            f"{self.name} does not support {operation}", provider=self.name
        )

    def _url(self, cfg: CallConfig, key: str = "base_url") -> str:
        """Per-call base URL override, else the configured one."""
        url = cfg.base_url or self.settings.get(key)
        if not url:
            raise ProviderError(
                f"no {key} configured for {self.name}", provider=self.name
            )
        return url

    def _raise_body_error(self, error: Any, cfg: CallConfig) -> None:
        """Vendors may answer 200 with an error object in the body."""
        if error is not None:
            raise APIError(
                f"{self.name} API error: {error.message}",
                provider=self.name,
                model=cfg.model or "unknown",
            )

    def _format_error(self, message: str, cfg: CallConfig) -> APIError:
        return APIError(message, provider=self.name, model=cfg.model or "unknown")

    def _validate(self, model: type[BaseModel], data: dict[str, Any], cfg: CallConfig) -> Any:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise APIError(
                f"unexpected {self.name} response format: {e}",
                provider=self.name,
                model=cfg.model or "unknown",
                response_data=data,
            ) from e
