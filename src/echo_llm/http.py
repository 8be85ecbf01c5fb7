"""
HTTP transport shared by all network providers.

One ``httpx.AsyncClient`` serves every call of a client instance. JSON
calls return the decoded body; streaming calls return the open response
after validating its status, leaving body consumption (and closing) to the
stream channel.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from .exceptions import APIError, APIStatusError, StreamingError, TransportError
from .logging_utils import operation_context

HTTP_OK = 200
EVENT_STREAM_TYPES = ("text/event-stream", "stream")


class HTTPTransport:
    """Thin wrapper around an ``httpx.AsyncClient`` for provider calls."""

    def __init__(
        self,
        timeout: httpx.Timeout | float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owns_client = client is None
        self.client: httpx.AsyncClient = client or httpx.AsyncClient(timeout=timeout)

    async def post_json(
        self,
        url: str,
        headers: dict[str, str],
        body: dict[str, Any],
        *,
        provider: str = "unknown",
        model: str = "unknown",
    ) -> dict[str, Any]:
        """POST a JSON body and decode the JSON answer.

        Raises:
            APIStatusError: On a non-200 status.
            APIError: If the answer is not a JSON object.
            TransportError: If the request could not be sent.
        """
        try:
            response = await self.client.post(url, json=body, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(
                f"request to {provider} failed: {e!s}", provider=provider, model=model
            ) from e

        if response.status_code != HTTP_OK:
            raise APIStatusError(
                f"status code: {response.status_code}, body: {response.text}",
                status_code=response.status_code,
                body=response.text,
                provider=provider,
                model=model,
            )

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise APIError(
                f"failed to decode response: {e}, body: {response.text}",
                provider=provider,
                model=model,
            ) from e
        if not isinstance(data, dict):
            raise APIError(
                f"expected a JSON object, got {type(data).__name__}",
                provider=provider,
                model=model,
            )
        return data

    async def open_stream(
        self,
        url: str,
        headers: dict[str, str],
        body: dict[str, Any],
        *,
        provider: str = "unknown",
        model: str = "unknown",
    ) -> httpx.Response:
        """POST a JSON body and return the still-open event-stream response.

        The caller owns the returned response and must ``aclose()`` it.

        Raises:
            APIStatusError: On a non-200 status (the body is read and closed).
            StreamingError: If the response is not an event stream.
            TransportError: If the request could not be sent.
        """
        request = self.client.build_request("POST", url, json=body, headers=headers)
        context = {"provider": provider, "model": model}
        async with operation_context("open_stream", context=context) as log:
            try:
                response = await self.client.send(request, stream=True)
            except httpx.HTTPError as e:
                raise TransportError(
                    f"stream request to {provider} failed: {e!s}",
                    provider=provider,
                    model=model,
                ) from e
            await self._check_stream(response, provider, model)
            log.debug("Stream opened", url=url)
        return response

    async def _check_stream(
        self, response: httpx.Response, provider: str, model: str
    ) -> None:
        """Close the response and raise unless it is a 200 event stream."""
        if response.status_code != HTTP_OK:
            try:
                error_text = (await response.aread()).decode("utf-8", "replace")
            except httpx.HTTPError:
                error_text = ""
            finally:
                await response.aclose()
            raise APIStatusError(
                f"status code: {response.status_code}, body: {error_text}",
                status_code=response.status_code,
                body=error_text,
                provider=provider,
                model=model,
            )

        content_type = response.headers.get("content-type", "")
        if not any(t in content_type for t in EVENT_STREAM_TYPES):
            await response.aclose()
            raise StreamingError(
                f"Expected streaming response, got content-type: {content_type}",
                provider=provider,
                model=model,
            )

    async def aclose(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> HTTPTransport:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
