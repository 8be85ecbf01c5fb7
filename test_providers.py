#!/usr/bin/env python3
"""
Tests for the network providers, driven through httpx.MockTransport.

No request leaves the process: each test installs a handler that checks
the outgoing request and answers with a canned body.
"""

import asyncio
import json

import httpx
import pytest

from echo_llm import EchoClient, Message, MessageRole
from echo_llm.exceptions import (
    APIError,
    APIStatusError,
    FrameParseError,
    StreamingError,
    TransportError,
    UnsupportedOperationError,
)
from echo_llm.streaming import StreamChunkType

SSE_HEADERS = {"content-type": "text/event-stream"}


class Recorder:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, response: httpx.Response):
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response

    @property
    def body(self) -> dict:
        return json.loads(self.requests[-1].content)

    @property
    def request(self) -> httpx.Request:
        return self.requests[-1]


class StalledBody(httpx.AsyncByteStream):
    """Response body that sends one piece and then never finishes."""

    def __init__(self, first: bytes):
        self.first = first
        self.close_calls = 0

    async def __aiter__(self):
        yield self.first
        await asyncio.Event().wait()

    async def aclose(self):
        self.close_calls += 1


def make_client(handler, provider: str, model: str) -> EchoClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return EchoClient(model, api_keys={provider: "test-key"}, http_client=http_client)


def sse(*frames: str) -> bytes:
    return "".join(f"{f}\n\n" for f in frames).encode()


CHAIN = [
    Message(role=MessageRole.SYSTEM, content="Be brief"),
    Message(role=MessageRole.USER, content="Hi"),
    Message(role=MessageRole.AGENT, content="Hello"),
    Message(role=MessageRole.USER, content="Bye"),
]


class TestOpenAIProvider:
    """Test OpenAI and OpenRouter requests and responses."""

    @pytest.mark.asyncio
    async def test_complete(self):
        recorder = Recorder(httpx.Response(200, json={
            "choices": [{"message": {"role": "assistant", "content": "Sure"}}],
            "usage": {"prompt_tokens": 3, "completion_tokens": 1, "total_tokens": 4},
        }))
        async with make_client(recorder, "openai", "openai/gpt-5") as client:
            response = await client.complete(CHAIN, temperature=0.2, max_tokens=50)

        assert response.text == "Sure"
        assert response.metadata == {
            "total_tokens": 4, "prompt_tokens": 3, "completion_tokens": 1
        }
        assert str(recorder.request.url) == "https://api.openai.com/v1/chat/completions"
        assert recorder.request.headers["authorization"] == "Bearer test-key"
        body = recorder.body
        assert body["model"] == "gpt-5"
        assert body["temperature"] == 0.2
        assert body["max_completion_tokens"] == 50
        assert [m["role"] for m in body["messages"]] == [
            "system", "user", "assistant", "user"
        ]
        assert "stream" not in body
        assert "provider" not in body

    @pytest.mark.asyncio
    async def test_system_message_option_replaces_chain_system(self):
        recorder = Recorder(httpx.Response(200, json={
            "choices": [{"message": {"content": "ok"}}]
        }))
        async with make_client(recorder, "openai", "openai/gpt-5") as client:
            await client.complete(CHAIN, system_message="Be verbose")

        messages = recorder.body["messages"]
        assert messages[0] == {"role": "system", "content": "Be verbose"}
        assert len(messages) == 4

    @pytest.mark.asyncio
    async def test_openrouter_endpoint_routing(self):
        recorder = Recorder(httpx.Response(200, json={
            "choices": [{"message": {"content": "routed"}}]
        }))
        async with make_client(
            recorder, "openrouter", "openrouter/openai/gpt-5@azure,openai"
        ) as client:
            response = await client.complete("Hi")

        assert response.text == "routed"
        assert str(recorder.request.url) == "https://openrouter.ai/api/v1/chat/completions"
        body = recorder.body
        assert body["model"] == "openai/gpt-5"
        assert body["provider"] == {
            "order": ["azure", "openai"],
            "only": ["azure", "openai"],
            "allow_fallbacks": True,
        }

    @pytest.mark.asyncio
    async def test_body_error_raises_api_error(self):
        recorder = Recorder(httpx.Response(200, json={
            "error": {"message": "quota exceeded", "code": 429}
        }))
        async with make_client(recorder, "openai", "openai/gpt-5") as client:
            with pytest.raises(APIError, match="quota exceeded"):
                await client.complete("Hi")

    @pytest.mark.asyncio
    async def test_no_choices_raises_api_error(self):
        recorder = Recorder(httpx.Response(200, json={"choices": []}))
        async with make_client(recorder, "openai", "openai/gpt-5") as client:
            with pytest.raises(APIError, match="no choices"):
                await client.complete("Hi")

    @pytest.mark.asyncio
    async def test_status_error_carries_code_and_body(self):
        recorder = Recorder(httpx.Response(401, text="invalid key"))
        async with make_client(recorder, "openai", "openai/gpt-5") as client:
            with pytest.raises(APIStatusError) as exc_info:
                await client.complete("Hi")

        assert exc_info.value.status_code == 401
        assert exc_info.value.body == "invalid key"
        assert exc_info.value.provider == "openai"

    @pytest.mark.asyncio
    async def test_undecodable_body_raises_api_error(self):
        recorder = Recorder(httpx.Response(200, text="<html>oops</html>"))
        async with make_client(recorder, "openai", "openai/gpt-5") as client:
            with pytest.raises(APIError, match="failed to decode"):
                await client.complete("Hi")

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error(self):

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        async with make_client(handler, "openai", "openai/gpt-5") as client:
            with pytest.raises(TransportError):
                await client.complete("Hi")

    @pytest.mark.asyncio
    async def test_stream(self):
        recorder = Recorder(httpx.Response(200, headers=SSE_HEADERS, content=sse(
            'data: {"choices":[{"delta":{"content":"Hi "}}]}',
            'data: {"choices":[{"delta":{"content":"there"}}]}',
            'data: {"choices":[],"usage":{"prompt_tokens":2,"completion_tokens":2,"total_tokens":4}}',
            "data: [DONE]",
        )))
        async with make_client(recorder, "openai", "openai/gpt-5") as client:
            async with await client.stream_complete("Hi") as stream:
                chunks = [chunk async for chunk in stream]

        body = recorder.body
        assert body["stream"] is True
        assert body["stream_options"] == {"include_usage": True}
        assert "".join(c.text for c in chunks if c.text) == "Hi there"
        assert chunks[-1].metadata["total_tokens"] == 4

    @pytest.mark.asyncio
    async def test_stream_aclose_releases_open_response(self):
        body = StalledBody(sse('data: {"choices":[{"delta":{"content":"Hi"}}]}'))
        recorder = Recorder(httpx.Response(200, headers=SSE_HEADERS, stream=body))
        async with make_client(recorder, "openai", "openai/gpt-5") as client:
            stream = await client.stream_complete("Hi")
            first = await stream.__anext__()
            await stream.aclose()
            rest = [chunk async for chunk in stream]

        assert first.text == "Hi"
        assert rest == []
        assert body.close_calls == 1
        assert recorder.response.is_closed

    @pytest.mark.asyncio
    async def test_stream_status_error_raised_before_stream(self):
        recorder = Recorder(httpx.Response(
            429, headers=SSE_HEADERS, content=b'{"error":"rate limited"}'
        ))
        async with make_client(recorder, "openai", "openai/gpt-5") as client:
            with pytest.raises(APIStatusError) as exc_info:
                await client.stream_complete("Hi")

        assert exc_info.value.status_code == 429
        assert "rate limited" in exc_info.value.body

    @pytest.mark.asyncio
    async def test_stream_wrong_content_type(self):
        recorder = Recorder(httpx.Response(200, json={"choices": []}))
        async with make_client(recorder, "openai", "openai/gpt-5") as client:
            with pytest.raises(StreamingError, match="content-type"):
                await client.stream_complete("Hi")

    @pytest.mark.asyncio
    async def test_embeddings(self):
        recorder = Recorder(httpx.Response(200, json={
            "data": [{"embedding": [0.1, 0.2], "index": 0}],
            "usage": {"prompt_tokens": 2, "total_tokens": 2},
        }))
        async with make_client(recorder, "openai", "openai/") as client:
            response = await client.get_embeddings("text")

        assert response.embedding == [0.1, 0.2]
        assert response.metadata == {"prompt_tokens": 2, "total_tokens": 2}
        assert str(recorder.request.url) == "https://api.openai.com/v1/embeddings"
        assert recorder.body == {"model": "text-embedding-3-small", "input": "text"}

    @pytest.mark.asyncio
    async def test_rerank_unsupported(self):
        recorder = Recorder(httpx.Response(200, json={}))
        async with make_client(recorder, "openai", "openai/gpt-5") as client:
            with pytest.raises(UnsupportedOperationError):
                await client.rerank("q", ["d"])
        assert recorder.requests == []


class TestAnthropicProvider:
    """Test the messages API mapping."""

    @pytest.mark.asyncio
    async def test_complete(self):
        recorder = Recorder(httpx.Response(200, json={
            "content": [
                {"type": "text", "text": "Hello"},
                {"type": "tool_use", "id": "t1"},
                {"type": "text", "text": " there"},
            ],
            "stop_reason": "end_turn",
            "usage": {"input_tokens": 12, "output_tokens": 3},
        }))
        async with make_client(recorder, "anthropic", "anthropic/claude-x") as client:
            response = await client.complete(CHAIN)

        assert response.text == "Hello there"
        assert response.metadata == {
            "stop_reason": "end_turn", "input_tokens": 12, "output_tokens": 3
        }
        request = recorder.request
        assert request.headers["x-api-key"] == "test-key"
        assert request.headers["anthropic-version"] == "2023-06-01"
        body = recorder.body
        assert body["system"] == "Be brief"
        assert body["max_tokens"] == 4096
        assert [m["role"] for m in body["messages"]] == ["user", "assistant", "user"]

    @pytest.mark.asyncio
    async def test_stream_end_to_end(self):
        recorder = Recorder(httpx.Response(200, headers=SSE_HEADERS, content=sse(
            'event: message_start\ndata: {"type":"message_start","message":{"usage":{"input_tokens":9,"output_tokens":1}}}',
            'event: content_block_start\ndata: {"type":"content_block_start","index":0,"content_block":{"type":"text","text":""}}',
            'event: ping\ndata: {"type":"ping"}',
            'event: content_block_delta\ndata: {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"Hi"}}',
            'event: content_block_stop\ndata: {"type":"content_block_stop","index":0}',
            'event: message_delta\ndata: {"type":"message_delta","delta":{"stop_reason":"end_turn"},"usage":{"output_tokens":6}}',
            'event: message_stop\ndata: {"type":"message_stop"}',
        )))
        async with make_client(recorder, "anthropic", "anthropic/claude-x") as client:
            async with await client.stream_complete("Hi", max_tokens=100) as stream:
                chunks = [chunk async for chunk in stream]

        assert recorder.body["stream"] is True
        assert recorder.body["max_tokens"] == 100
        assert [c.chunk_type for c in chunks] == [
            StreamChunkType.TEXT, StreamChunkType.METADATA
        ]
        assert chunks[0].text == "Hi"
        assert chunks[1].metadata == {"input_tokens": 9, "output_tokens": 6}

    @pytest.mark.asyncio
    async def test_stream_malformed_frame(self):
        recorder = Recorder(httpx.Response(200, headers=SSE_HEADERS, content=sse(
            'event: content_block_delta\ndata: {"type":"content_block_delta","delta":{"text":"ok","type":"text_delta"}}',
            "event: content_block_delta\ndata: {oops",
        )))
        async with make_client(recorder, "anthropic", "anthropic/claude-x") as client:
            async with await client.stream_complete("Hi") as stream:
                chunks = [chunk async for chunk in stream]

        assert chunks[0].text == "ok"
        assert isinstance(chunks[-1].error, FrameParseError)


class TestGoogleProvider:
    """Test the Gemini mapping."""

    @pytest.mark.asyncio
    async def test_complete(self):
        recorder = Recorder(httpx.Response(200, json={
            "candidates": [{"content": {"parts": [{"text": "Bonjour"}]}}],
            "usageMetadata": {
                "promptTokenCount": 2, "candidatesTokenCount": 1, "totalTokenCount": 3
            },
        }))
        async with make_client(recorder, "google", "google/gemini-2.5-flash") as client:
            response = await client.complete(CHAIN, temperature=0.5, max_tokens=10)

        assert response.text == "Bonjour"
        assert response.metadata == {
            "total_tokens": 3, "prompt_tokens": 2, "completion_tokens": 1
        }
        request = recorder.request
        assert str(request.url) == (
            "https://generativelanguage.googleapis.com/v1beta/models/"
            "gemini-2.5-flash:generateContent"
        )
        assert request.headers["x-goog-api-key"] == "test-key"
        body = recorder.body
        assert body["systemInstruction"] == {"parts": [{"text": "Be brief"}]}
        assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
        assert body["generationConfig"] == {"temperature": 0.5, "maxOutputTokens": 10}

    @pytest.mark.asyncio
    async def test_stream_end_to_end(self):
        recorder = Recorder(httpx.Response(200, headers=SSE_HEADERS, content=sse(
            'data: {"candidates":[{"content":{"parts":[{"text":"Bon"}]}}]}',
            'data: {"candidates":[{"content":{"parts":[{"text":"jour"}]}}],'
            '"usageMetadata":{"promptTokenCount":2,"candidatesTokenCount":2,"totalTokenCount":4}}',
        )))
        async with make_client(recorder, "google", "google/gemini-2.5-flash") as client:
            async with await client.stream_complete("Hi") as stream:
                chunks = [chunk async for chunk in stream]

        assert str(recorder.request.url).endswith(
            "/gemini-2.5-flash:streamGenerateContent?alt=sse"
        )
        assert "generationConfig" not in recorder.body
        assert [c.text for c in chunks[:2]] == ["Bon", "jour"]
        assert chunks[2].metadata == {
            "total_tokens": 4, "prompt_tokens": 2, "completion_tokens": 2
        }

    @pytest.mark.asyncio
    async def test_embeddings(self):
        recorder = Recorder(httpx.Response(200, json={"embedding": {"values": [1.0, 2.0]}}))
        async with make_client(recorder, "google", "google/") as client:
            response = await client.get_embeddings("text")

        assert response.embedding == [1.0, 2.0]
        assert str(recorder.request.url).endswith("/text-embedding-004:embedContent")
        assert recorder.body == {"content": {"parts": [{"text": "text"}]}}


class TestVoyageProvider:
    """Test embeddings and reranking."""

    @pytest.mark.asyncio
    async def test_embeddings(self):
        recorder = Recorder(httpx.Response(200, json={
            "data": [{"embedding": [0.5], "index": 0}],
            "model": "voyage-3",
            "usage": {"total_tokens": 5},
        }))
        async with make_client(recorder, "voyage", "voyage/voyage-3") as client:
            response = await client.get_embeddings("text")

        assert response.embedding == [0.5]
        assert response.metadata == {"total_tokens": 5, "model": "voyage-3"}
        assert recorder.request.headers["authorization"] == "Bearer test-key"

    @pytest.mark.asyncio
    async def test_rerank_scores_follow_input_order(self):
        recorder = Recorder(httpx.Response(200, json={
            "results": [
                {"index": 2, "relevance_score": 0.9},
                {"index": 0, "relevance_score": 0.4},
                {"index": 1, "relevance_score": 0.1},
            ],
            "total_tokens": 30,
            "model": "rerank-2.5",
        }))
        async with make_client(recorder, "voyage", "voyage/") as client:
            response = await client.rerank("query", ["a", "b", "c"])

        assert response.scores == [0.4, 0.1, 0.9]
        assert response.metadata == {"total_tokens": 30, "model": "rerank-2.5"}
        assert str(recorder.request.url) == "https://api.voyageai.com/v1/rerank"
        assert recorder.body == {
            "query": "query", "documents": ["a", "b", "c"], "model": "rerank-2.5"
        }

    @pytest.mark.asyncio
    async def test_chat_unsupported(self):
        recorder = Recorder(httpx.Response(200, json={}))
        async with make_client(recorder, "voyage", "voyage/voyage-3") as client:
            with pytest.raises(UnsupportedOperationError):
                await client.complete("Hi")
            with pytest.raises(UnsupportedOperationError):
                await client.stream_complete("Hi")
