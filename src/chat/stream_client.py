"""Streaming client for the chat endpoint.

POST /chat returns an opaque byte stream. The client drains it until
exhaustion without interpreting it; interested observers receive each raw
chunk through an optional callback. The ``x-chat-id`` response header, when
present, carries the id of a session the server created for this request.
"""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from src.chat.cancellation import CancellationToken
from src.chat.models import ChatMessage
from src.chat.store_client import DEFAULT_BASE_URL
from src.copilot.i18n import Translator, translate as default_translate
from src.utils.redaction import sanitize_error_message

logger = logging.getLogger(__name__)

CHAT_ID_HEADER = "x-chat-id"


class ChatStreamError(Exception):
    """Non-abort failure of a chat stream request."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass
class ChatRequest:
    """Body of a POST /chat request.

    Optional side-channel fields are omitted from the payload when None.
    """

    id: str
    chat_id: str
    messages: list[ChatMessage] = field(default_factory=list)
    tab_id: str | None = None
    connection_id: str | None = None
    database: str | None = None
    table: str | None = None
    model: str | None = None
    web_search: bool | None = None

    def to_api(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "chatId": self.chat_id}
        optional = {
            "tabId": self.tab_id,
            "connectionId": self.connection_id,
            "database": self.database,
            "table": self.table,
            "model": self.model,
            "webSearch": self.web_search,
        }
        payload.update({k: v for k, v in optional.items() if v is not None})
        payload["messages"] = [m.to_api() for m in self.messages]
        return payload


@dataclass
class ChatStreamResult:
    """Outcome of a fully drained stream."""

    chat_id: str | None = None
    bytes_received: int = 0


class ChatStreamClient:
    """Sends chat requests and drains the streamed reply."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str | None = None,
        timeout: float | None = None,
        translate: Translator | None = None,
    ):
        """Initialize with the API base URL.

        Args:
            base_url: Base URL that /chat is appended to.
            api_key: Optional key sent as X-API-Key.
            timeout: Read timeout in seconds; None leaves the stream
                bounded only by cancellation.
            translate: Localization function for fallback messages.
        """
        self._base_url = base_url
        self._api_key = (api_key or "").strip()
        self._timeout = timeout
        self._t = translate or default_translate
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "ChatStreamClient":
        headers = {}
        if self._api_key:
            headers["X-API-Key"] = self._api_key
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers=headers,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client:
            await self._client.aclose()

    async def send(
        self,
        request: ChatRequest,
        token: CancellationToken | None = None,
        on_chunk: Callable[[bytes], None] | None = None,
    ) -> ChatStreamResult:
        """Send a chat request and drain its response stream.

        Args:
            request: Request body.
            token: Checked before the request and after every chunk.
            on_chunk: Receives each raw chunk as it arrives.

        Returns:
            ChatStreamResult with the server-assigned chat id, if any.

        Raises:
            RequestAborted: If the token was cancelled.
            ChatStreamError: On network failure or a non-2xx status.
        """
        if self._client is None:
            raise RuntimeError("ChatStreamClient must be used as an async context manager")
        token = token or CancellationToken()
        token.raise_if_cancelled()

        result = ChatStreamResult()
        try:
            async with self._client.stream("POST", "/chat", json=request.to_api()) as resp:
                if resp.status_code >= 400:
                    body = await resp.aread()
                    raise ChatStreamError(
                        self._error_message(body), status_code=resp.status_code,
                    )
                result.chat_id = resp.headers.get(CHAT_ID_HEADER) or None
                async for chunk in resp.aiter_bytes():
                    token.raise_if_cancelled()
                    result.bytes_received += len(chunk)
                    if on_chunk is not None:
                        on_chunk(chunk)
                token.raise_if_cancelled()
        except httpx.HTTPError as exc:
            token.raise_if_cancelled()
            logger.warning("Chat stream for %s failed (transport): %s", request.chat_id, exc)
            raise ChatStreamError(self._t("Errors.SendFailed")) from exc

        logger.debug(
            "Chat stream for %s drained: %d bytes, chat id %s",
            request.chat_id, result.bytes_received, result.chat_id,
        )
        return result

    def _error_message(self, body: bytes) -> str:
        """Best-effort message from an error response body."""
        text = body.decode("utf-8", errors="replace").strip()
        try:
            data = json.loads(text) if text else None
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return sanitize_error_message(text) or self._t("Errors.RequestFailed")
