"""Anthropic messages API."""

from __future__ import annotations

from typing import Any

from ..messages import apply_system_override
from ..models import CallConfig, Message, MessageRole, Response
from ..streaming import AnthropicEventTranslator, StreamHandle, stream_sse
from .base import Provider
from .schemas import AnthropicMessageResponse

DEFAULT_API_VERSION = "2023-06-01"
DEFAULT_MAX_TOKENS = 4096


class AnthropicProvider(Provider):
    """
    Claude models over the messages endpoint.

    The system message travels in its own ``system`` field and ``agent``
    turns are sent as ``assistant``. ``max_tokens`` is mandatory for this
    API, so it defaults to ``anthropic.default_max_tokens``.
    """

    name = "anthropic"

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": self.settings.get("api_version", DEFAULT_API_VERSION),
        }

    def build_request(
        self, messages: list[Message], cfg: CallConfig, *, streaming: bool
    ) -> dict[str, Any]:
        system = None
        turns = []
        for message in apply_system_override(messages, cfg.system_message):
            role = message.role_name
            if role == MessageRole.SYSTEM.value:
                system = message.content
                continue
            turns.append({
                "role": "assistant" if role == MessageRole.AGENT.value else "user",
                "content": message.content,
            })

        body: dict[str, Any] = {
            "model": cfg.model,
            "messages": turns,
            "max_tokens": cfg.max_tokens
            or self.settings.get("default_max_tokens", DEFAULT_MAX_TOKENS),
        }
        if cfg.temperature is not None:
            body["temperature"] = cfg.temperature
        if system:
            body["system"] = system
        if streaming:
            body["stream"] = True
        return body

    async def complete(self, messages: list[Message], cfg: CallConfig) -> Response:
        data = await self.transport.post_json(
            self._url(cfg),
            self._headers(),
            self.build_request(messages, cfg, streaming=False),
            provider=self.name,
            model=cfg.model or "unknown",
        )
        parsed: AnthropicMessageResponse = self._validate(AnthropicMessageResponse, data, cfg)
        self._raise_body_error(parsed.error, cfg)
        if not parsed.content:
            raise self._format_error("no content in Anthropic response", cfg)

        text = "".join(block.text for block in parsed.content if block.type == "text")
        return Response(
            text=text,
            metadata={
                "stop_reason": parsed.stop_reason,
                "input_tokens": parsed.usage.input_tokens,
                "output_tokens": parsed.usage.output_tokens,
            },
        )

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
            AnthropicEventTranslator(),
            on_close=response.aclose,
            timeout=cfg.stream_timeout,
            log_context={"provider": self.name, "model": cfg.model},
        )
