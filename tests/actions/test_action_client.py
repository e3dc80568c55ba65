"""Tests for QuickActionClient: mocked HTTP responses."""

import json

import httpx
import pytest

from src.actions.client import QuickActionClient
from src.actions.models import Risk
from src.copilot.envelope import build_fix_input
from src.errors import MissingAIConfigError, QuickActionError

BASE = "http://workbench.test/api"


class FakeTransport(httpx.AsyncBaseTransport):
    """Returns one canned response and records requests."""

    def __init__(self, status: int, body: object):
        self._status = status
        self._body = body
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request):
        self.requests.append(request)
        if isinstance(self._body, dict):
            return httpx.Response(self._status, json=self._body, request=request)
        return httpx.Response(self._status, text=self._body, request=request)


def _make_client(transport: httpx.AsyncBaseTransport) -> QuickActionClient:
    client = QuickActionClient(base_url=BASE)
    client._client = httpx.AsyncClient(transport=transport, base_url=BASE)
    return client


FIX_INPUT = build_fix_input("SELECT 1", error={"message": "boom"}, database="db1", dialect="mysql")


class TestRun:
    """POST /action."""

    @pytest.mark.asyncio
    async def test_success(self):
        transport = FakeTransport(200, {
            "title": "Fixed", "explanation": "ok", "fixedSql": "SELECT 2", "risk": "medium",
        })
        client = _make_client(transport)
        result = await client.run("fix-sql-error", FIX_INPUT)
        assert result.fixed_sql == "SELECT 2"
        assert result.risk == Risk.MEDIUM

        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/action"
        body = json.loads(request.content)
        assert body["intent"] == "fix-sql-error"
        assert body["input"]["surface"] == "sql"
        assert body["input"]["lastExecution"]["sql"] == "SELECT 1"
        assert body["input"]["lastExecution"]["error"]["message"] == "boom"

    @pytest.mark.asyncio
    async def test_error_message_from_json(self):
        client = _make_client(FakeTransport(422, {"code": "BAD_INPUT", "message": "SQL is required"}))
        with pytest.raises(QuickActionError) as exc_info:
            await client.run("rewrite-sql", FIX_INPUT)
        assert exc_info.value.message == "SQL is required"
        assert exc_info.value.server_code == "BAD_INPUT"
        assert exc_info.value.status_code == 422

    @pytest.mark.asyncio
    async def test_missing_ai_env(self):
        client = _make_client(FakeTransport(503, {"code": "MISSING_AI_ENV", "message": "No model configured"}))
        with pytest.raises(MissingAIConfigError, match="No model configured"):
            await client.run("rewrite-sql", FIX_INPUT)

    @pytest.mark.asyncio
    async def test_plain_text_error(self):
        client = _make_client(FakeTransport(500, "upstream exploded"))
        with pytest.raises(QuickActionError, match="upstream exploded"):
            await client.run("rewrite-sql", FIX_INPUT)

    @pytest.mark.asyncio
    async def test_empty_error_body_fallback(self):
        client = _make_client(FakeTransport(500, ""))
        with pytest.raises(QuickActionError, match="Quick action failed"):
            await client.run("rewrite-sql", FIX_INPUT)

    @pytest.mark.asyncio
    async def test_network_failure(self):
        class Failing(httpx.AsyncBaseTransport):
            async def handle_async_request(self, request):
                raise httpx.ConnectError("refused", request=request)

        with pytest.raises(QuickActionError, match="Quick action failed"):
            await _make_client(Failing()).run("rewrite-sql", FIX_INPUT)

    @pytest.mark.asyncio
    async def test_requires_context_manager(self):
        with pytest.raises(RuntimeError):
            await QuickActionClient(base_url=BASE).run("rewrite-sql", FIX_INPUT)

    @pytest.mark.asyncio
    async def test_api_key_header(self):
        async with QuickActionClient(base_url=BASE, api_key="secret") as client:
            assert client._client.headers["X-API-Key"] == "secret"
