"""Tests for ChatStreamClient: mocked streaming responses."""

import json

import httpx
import pytest

from src.chat.cancellation import CancellationToken, RequestAborted
from src.chat.models import ChatMessage
from src.chat.stream_client import ChatRequest, ChatStreamClient, ChatStreamError

BASE = "http://workbench.test/api"


class StreamTransport(httpx.AsyncBaseTransport):
    """Returns one canned streaming response and records the request."""

    def __init__(self, status=200, chunks=(b"",), headers=None, body=None):
        self._status = status
        self._chunks = chunks
        self._headers = headers or {}
        self._body = body
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request):
        self.requests.append(request)
        if self._body is not None:
            return httpx.Response(self._status, headers=self._headers, content=self._body, request=request)

        async def stream():
            for chunk in self._chunks:
                yield chunk

        return httpx.Response(self._status, headers=self._headers, content=stream(), request=request)


def _make_client(transport: httpx.AsyncBaseTransport) -> ChatStreamClient:
    client = ChatStreamClient(base_url=BASE)
    client._client = httpx.AsyncClient(transport=transport, base_url=BASE)
    return client


def _request(**extra) -> ChatRequest:
    return ChatRequest(
        id="req_1",
        chat_id="s1",
        messages=[ChatMessage.user_text("m1", "hello")],
        **extra,
    )


class TestChatRequest:
    """Request payload shape."""

    def test_omits_unset_side_channel_fields(self):
        payload = _request().to_api()
        assert payload == {
            "id": "req_1",
            "chatId": "s1",
            "messages": [{"id": "m1", "role": "user", "parts": [{"type": "text", "text": "hello"}]}],
        }

    def test_includes_side_channel_fields(self):
        payload = _request(tab_id="t", database="db", table="events", model="m", web_search=False).to_api()
        assert payload["tabId"] == "t"
        assert payload["database"] == "db"
        assert payload["table"] == "events"
        assert payload["model"] == "m"
        assert payload["webSearch"] is False


class TestSend:
    """Draining the stream."""

    @pytest.mark.asyncio
    async def test_drains_chunks_and_reads_chat_id(self):
        transport = StreamTransport(chunks=(b"ab", b"cd"), headers={"x-chat-id": "sess-9"})
        client = _make_client(transport)
        received = []
        result = await client.send(_request(), on_chunk=received.append)
        assert b"".join(received) == b"abcd"
        assert result.bytes_received == 4
        assert result.chat_id == "sess-9"
        body = json.loads(transport.requests[0].content)
        assert body["chatId"] == "s1"

    @pytest.mark.asyncio
    async def test_no_header_means_no_chat_id(self):
        client = _make_client(StreamTransport(chunks=(b"x",)))
        result = await client.send(_request())
        assert result.chat_id is None

    @pytest.mark.asyncio
    async def test_error_status_uses_json_message(self):
        client = _make_client(StreamTransport(status=400, body=b'{"message": "model unavailable"}'))
        with pytest.raises(ChatStreamError) as exc_info:
            await client.send(_request())
        assert exc_info.value.message == "model unavailable"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_error_status_plain_text(self):
        client = _make_client(StreamTransport(status=503, body=b"overloaded"))
        with pytest.raises(ChatStreamError, match="overloaded"):
            await client.send(_request())

    @pytest.mark.asyncio
    async def test_error_status_empty_body_fallback(self):
        client = _make_client(StreamTransport(status=500, body=b""))
        with pytest.raises(ChatStreamError, match="Request failed"):
            await client.send(_request())

    @pytest.mark.asyncio
    async def test_pre_cancelled_token_sends_nothing(self):
        transport = StreamTransport(chunks=(b"x",))
        client = _make_client(transport)
        token = CancellationToken()
        token.cancel()
        with pytest.raises(RequestAborted):
            await client.send(_request(), token=token)
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_cancel_mid_stream_aborts(self):
        client = _make_client(StreamTransport(chunks=(b"a", b"b", b"c")))
        token = CancellationToken()
        received = []

        def on_chunk(chunk):
            received.append(chunk)
            token.cancel()

        with pytest.raises(RequestAborted):
            await client.send(_request(), token=token, on_chunk=on_chunk)
        assert received == [b"a"]

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        class Failing(httpx.AsyncBaseTransport):
            async def handle_async_request(self, request):
                raise httpx.ReadError("reset", request=request)

        client = _make_client(Failing())
        with pytest.raises(ChatStreamError, match="Failed to send message"):
            await client.send(_request())
