"""OpenAI chat completions, also used for OpenRouter."""

from __future__ import annotations

from typing import Any

from ..messages import apply_system_override
from ..models import CallConfig, EmbeddingResponse, Message, Response
from ..streaming import OpenAIDeltaTranslator, StreamHandle, stream_sse
from .base import Provider
from .schemas import OpenAIChatResponse, OpenAIEmbeddingResponse

DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"

_ROLE_MAP = {"system": "system", "user": "user", "agent": "assistant"}


class OpenAIProvider(Provider):
    """Bearer-authenticated OpenAI-compatible endpoint."""

    name = "openai"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def build_request(
        self, messages: list[Message], cfg: CallConfig, *, streaming: bool
    ) -> dict[str, Any]:
        chain = apply_system_override(messages, cfg.system_message)
        body: dict[str, Any] = {
            "model": cfg.model,
            "messages": [
                {"role": _ROLE_MAP[m.role_name], "content": m.content} for m in chain
            ],
        }
        if cfg.temperature is not None:
            body["temperature"] = cfg.temperature
        if cfg.max_tokens is not None:
            body["max_completion_tokens"] = cfg.max_tokens
        if streaming:
            body["stream"] = True
            body["stream_options"] = {"include_usage": True}
        if cfg.endpoint:
            # OpenRouter provider routing
            order = cfg.endpoint.split(",")
            body["provider"] = {"order": order, "only": order, "allow_fallbacks": True}
        return body

    async def complete(self, messages: list[Message], cfg: CallConfig) -> Response:
        data = await self.transport.post_json(
            self._url(cfg),
            self._headers(),
            self.build_request(messages, cfg, streaming=False),
            provider=self.name,
            model=cfg.model or "unknown",
        )
        parsed: OpenAIChatResponse = self._validate(OpenAIChatResponse, data, cfg)
        self._raise_body_error(parsed.error, cfg)
        if not parsed.choices:
            raise self._format_error("no choices in response", cfg)

        metadata = parsed.usage.as_metadata() if parsed.usage else {}
        return Response(text=parsed.choices[0].message.content or "", metadata=metadata)

    async def stream_complete(self, messages: list[Message], cfg: CallConfig) -> StreamHandle:
        response = await self.transport.open_stream(
            self._url(cfg),
            self._headers(),
            self.build_request(messages, cfg, streaming=True),
            provider=self.name,
            model=cfg.model or "unknown",
        )
        return stream_sse(
            response.aiter_bytes(),
            OpenAIDeltaTranslator(),
            on_close=response.aclose,
            timeout=cfg.stream_timeout,
            log_context={"provider": self.name, "model": cfg.model},
        )

    async def get_embeddings(self, text: str, cfg: CallConfig) -> EmbeddingResponse:
        model = cfg.model or DEFAULT_EMBEDDING_MODEL
        data = await self.transport.post_json(
            self._url(cfg, "embeddings_url"),
            self._headers(),
            {"model": model, "input": text},
            provider=self.name,
            model=model,
        )
        parsed: OpenAIEmbeddingResponse = self._validate(OpenAIEmbeddingResponse, data, cfg)
        self._raise_body_error(parsed.error, cfg)
        if not parsed.data:
            raise self._format_error("no embedding data in response", cfg)

        metadata: dict[str, Any] = {}
        if parsed.usage:
            metadata = {
                "prompt_tokens": parsed.usage.prompt_tokens,
                "total_tokens": parsed.usage.total_tokens,
            }
        return EmbeddingResponse(embedding=parsed.data[0].embedding, metadata=metadata)
