"""
Unified client over every configured provider.

Calls name their target with a model string ``provider/model[@endpoint]``
(or an alias such as ``anthropic/balanced``). The client resolves it,
merges call options over its defaults and dispatches to the provider.
"""

from __future__ import annotations

from typing import Any

import httpx

from .config import Configuration
from .exceptions import ProviderError
from .http import HTTPTransport
from .logging_utils import ContextualLogger, log_operation
from .messages import quick_message, validate_messages
from .models import CallConfig, EmbeddingResponse, Message, RerankResponse, Response
from .providers import PROVIDERS, Provider
from .streaming import StreamHandle

# Providers that work without credentials
KEYLESS_PROVIDERS = ("mock",)


def parse_model_string(full_name: str) -> tuple[str, str, str | None]:
    """
    Split ``provider/model[@endpoint]`` into its parts.

    Only the first ``/`` separates the provider, so OpenRouter names such as
    ``openrouter/openai/gpt-5`` keep their vendor prefix.

    Raises:
        ProviderError: If there is no provider prefix.
    """
    provider, sep, model = full_name.partition("/")
    if not sep or not provider:
        raise ProviderError(
            f"invalid model format: {full_name}. Expected provider/model-name@endpoint"
        )
    endpoint = None
    if "@" in model:
        model, endpoint = model.split("@", 1)
    return provider, model, endpoint


class EchoClient:
    """
    Entry point for completions, streams, embeddings and reranking.

    Example::

        async with EchoClient("anthropic/balanced") as client:
            response = await client.complete("Hello")
            async with await client.stream_complete("Tell me a story") as stream:
                async for chunk in stream:
                    ...
    """

    def __init__(
        self,
        model: str | None = None,
        *,
        api_keys: dict[str, str] | None = None,
        config: Configuration | None = None,
        http_client: httpx.AsyncClient | None = None,
        defaults: CallConfig | None = None,
    ) -> None:
        """
        Args:
            model: Default model string for calls that do not name one
            api_keys: Provider name -> key. When given, only these providers
                (plus the keyless ones) are available; otherwise every known
                provider reads ``<PROVIDER>_API_KEY`` or ``ECHO_KEY``.
            config: Configuration to use instead of the packaged default
            http_client: Shared httpx client; the caller keeps ownership
            defaults: Call options applied to every call
        """
        self.config = config or Configuration()
        self.defaults = (defaults or CallConfig()).merge(model=model)
        self.aliases = self.config.get_aliases()
        self.log = ContextualLogger(self.log_context())

        if api_keys is None:
            names = list(PROVIDERS)
            keys = {name: self.config.api_key_for(name) for name in names}
        else:
            names = [*api_keys, *(p for p in KEYLESS_PROVIDERS if p not in api_keys)]
            keys = {name: api_keys.get(name, "") for name in names}
        for name in names:
            if name not in PROVIDERS:
                raise ProviderError(f"unknown provider: {name}", provider=name)

        self.transport = HTTPTransport(
            timeout=self.config.get_http_timeout(), client=http_client
        )
        self.providers: dict[str, Provider] = {
            name: PROVIDERS[name](
                keys[name],
                self.transport,
                self.config.get_provider_config(name),
                name=name,
            )
            for name in names
        }

    def log_context(self) -> dict[str, Any]:
        return {"default_model": self.defaults.model or "unset"}

    def resolve(self, **options: Any) -> tuple[Provider, CallConfig]:
        """
        Merge call options over the defaults and pick the provider.

        Model precedence: call option, client default, ``ECHO_MODEL``.

        Raises:
            ProviderError: If no model is set or its provider is unknown.
        """
        cfg = self.defaults.merge(**options)
        full_name = cfg.model or self.config.default_model()
        if not full_name:
            raise ProviderError(
                "no model specified: pass a model or set ECHO_MODEL"
            )

        full_name = self.aliases.get(full_name, full_name)
        provider_name, model, endpoint = parse_model_string(full_name)

        provider = self.providers.get(provider_name)
        if provider is None:
            raise ProviderError(
                f"unknown provider: {provider_name}", provider=provider_name, model=model
            )

        if cfg.stream_timeout is None:
            cfg = cfg.merge(stream_timeout=self.config.get_stream_timeout())
        cfg = cfg.merge(model=model, endpoint=endpoint)

        self.log.bind(provider=provider_name, model=model).debug(
            "Resolved model", requested=full_name, endpoint=cfg.endpoint
        )
        return provider, cfg

    @staticmethod
    def _chain(messages: str | list[Message]) -> list[Message]:
        if isinstance(messages, str):
            messages = quick_message(messages)
        validate_messages(messages)
        return messages

    @log_operation("complete")
    async def complete(self, messages: str | list[Message], **options: Any) -> Response:
        """Run one completion; a bare string is sent as a single user message."""
        chain = self._chain(messages)
        provider, cfg = self.resolve(**options)
        return await provider.complete(chain, cfg)

    @log_operation("stream_complete")
    async def stream_complete(
        self, messages: str | list[Message], **options: Any
    ) -> StreamHandle:
        """
        Start a streaming completion.

        Status and transport failures are raised here, before any stream
        exists; everything after that arrives as chunks on the handle.
        """
        chain = self._chain(messages)
        provider, cfg = self.resolve(**options)
        return await provider.stream_complete(chain, cfg)

    @log_operation("get_embeddings")
    async def get_embeddings(self, text: str, **options: Any) -> EmbeddingResponse:
        provider, cfg = self.resolve(**options)
        return await provider.get_embeddings(text, cfg)

    @log_operation("rerank")
    async def rerank(
        self, query: str, documents: list[str], **options: Any
    ) -> RerankResponse:
        """Score documents against a query; scores follow input order."""
        provider, cfg = self.resolve(**options)
        return await provider.rerank(query, documents, cfg)

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> EchoClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
