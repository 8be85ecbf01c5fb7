"""Google Gemini generateContent API."""

from __future__ import annotations

from typing import Any

from ..messages import apply_system_override
from ..models import CallConfig, EmbeddingResponse, Message, MessageRole, Response
from ..streaming import GeminiCandidateTranslator, StreamHandle, stream_sse
from .base import Provider
from .schemas import GeminiEmbeddingResponse, GeminiResponse

DEFAULT_EMBEDDING_MODEL = "text-embedding-004"
GENERATE_SUFFIX = ":generateContent"
STREAM_SUFFIX = ":streamGenerateContent?alt=sse"


class GoogleProvider(Provider):
    """Gemini models, authenticated with ``x-goog-api-key``."""

    name = "google"

    def _headers(self) -> dict[str, str]:
        return {"x-goog-api-key": self.api_key}

    def _model_url(self, cfg: CallConfig, model: str, action: str) -> str:
        if cfg.base_url:
            return cfg.base_url
        return f"{self._url(cfg).rstrip('/')}/{model}{action}"

    def build_request(self, messages: list[Message], cfg: CallConfig) -> dict[str, Any]:
        system = None
        contents = []
        for message in apply_system_override(messages, cfg.system_message):
            role = message.role_name
            if role == MessageRole.SYSTEM.value:
                system = message.content
                continue
            contents.append({
                "role": "model" if role == MessageRole.AGENT.value else "user",
                "parts": [{"text": message.content}],
            })

        body: dict[str, Any] = {"contents": contents}
        if system:
            body["systemInstruction"] = {"parts": [{"text": system}]}

        generation: dict[str, Any] = {}
        if cfg.temperature is not None:
            generation["temperature"] = cfg.temperature
        if cfg.max_tokens is not None:
            generation["maxOutputTokens"] = cfg.max_tokens
        if generation:
            body["generationConfig"] = generation
        return body

    async def complete(self, messages: list[Message], cfg: CallConfig) -> Response:
        data = await self.transport.post_json(
            self._model_url(cfg, cfg.model, GENERATE_SUFFIX),
            self._headers(),
            self.build_request(messages, cfg),
            provider=self.name,
            model=cfg.model or "unknown",
        )
        parsed: GeminiResponse = self._validate(GeminiResponse, data, cfg)
        self._raise_body_error(parsed.error, cfg)
        if not parsed.candidates:
            raise self._format_error("no candidates in Gemini response", cfg)
        parts = parsed.candidates[0].content.parts
        if not parts:
            raise self._format_error("no content parts in Gemini response", cfg)

        metadata = parsed.usageMetadata.as_metadata() if parsed.usageMetadata else {}
        return Response(text=parts[0].text, metadata=metadata)

    async def stream_complete(self, messages: list[Message], cfg: CallConfig) -> StreamHandle:
        url = self._model_url(cfg, cfg.model, GENERATE_SUFFIX)
        response = await self.transport.open_stream(
            url.replace(GENERATE_SUFFIX, STREAM_SUFFIX, 1),
            self._headers(),
            self.build_request(messages, cfg),
            provider=self.name,
            model=cfg.model or "unknown",
        )
        return stream_sse(
            response.aiter_bytes(),
            GeminiCandidateTranslator(),
            on_close=response.aclose,
            timeout=cfg.stream_timeout,
            log_context={"provider": self.name, "model": cfg.model},
        )

    async def get_embeddings(self, text: str, cfg: CallConfig) -> EmbeddingResponse:
        model = cfg.model or DEFAULT_EMBEDDING_MODEL
        data = await self.transport.post_json(
            self._model_url(cfg, model, ":embedContent"),
            self._headers(),
            {"content": {"parts": [{"text": text}]}},
            provider=self.name,
            model=model,
        )
        parsed: GeminiEmbeddingResponse = self._validate(GeminiEmbeddingResponse, data, cfg)
        self._raise_body_error(parsed.error, cfg)
        if not parsed.embedding.values:
            raise self._format_error("no embedding data in response", cfg)
        return EmbeddingResponse(embedding=parsed.embedding.values, metadata={})
