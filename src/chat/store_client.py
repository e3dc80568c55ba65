"""HTTP client for the chat session store.

Thin wrapper around httpx that talks to the workbench session API. Every
response uses the envelope ``{code, message?, data?}``; a non-2xx status or a
non-zero code is a failure and raises SessionStoreError carrying the server
message, or a localized fallback when the body has none. The client has no
retry or caching logic of its own.
"""

import logging
from typing import Any, Callable, Protocol, TypeVar

import httpx

from src.chat.models import ChatMode, ChatSession, SessionDetail
from src.copilot.i18n import Translator, translate as default_translate
from src.copilot.models import CopilotEnvelope
from src.utils.redaction import sanitize_error_message

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:3000/api"

T = TypeVar("T")


class SessionStoreError(Exception):
    """Transport failure raised by the session store client.

    Attributes:
        message: Server-provided message, or a localized fallback.
        status_code: HTTP status, if a response was received.
        code: Non-zero envelope code, if the server sent one.
    """

    def __init__(self, message: str, status_code: int | None = None, code: int | None = None):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class SessionStore(Protocol):
    """Operations the session lifecycle needs from the store."""

    async def list_sessions(self, mode: ChatMode) -> list[ChatSession]: ...

    async def get_session_detail(self, session_id: str) -> SessionDetail: ...

    async def create_session(self) -> ChatSession: ...

    async def rename_session(self, session_id: str, title: str) -> None: ...

    async def delete_session(self, session_id: str) -> None: ...

    async def get_or_create_copilot_session(self, envelope: CopilotEnvelope) -> ChatSession: ...

    async def get_copilot_session(self, tab_id: str) -> ChatSession | None: ...


class SessionStoreClient:
    """SessionStore implementation backed by the HTTP session API."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: str | None = None,
        timeout: float | None = 30.0,
        translate: Translator | None = None,
    ):
        """Initialize with the API base URL.

        Args:
            base_url: Base URL that the endpoint paths are appended to.
            api_key: Optional key sent as X-API-Key.
            timeout: Request timeout in seconds; None disables it.
            translate: Localization function for fallback messages.
        """
        self._base_url = base_url
        self._api_key = (api_key or "").strip()
        self._timeout = timeout
        self._t = translate or default_translate
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "SessionStoreClient":
        """Open httpx async client."""
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
        """Close httpx async client."""
        if self._client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, fallback_key: str, **kwargs: Any) -> dict:
        """Send one request and unwrap the response envelope.

        Args:
            method: HTTP method.
            path: Endpoint path relative to the base URL.
            fallback_key: Message key used when the server gives no message.
            **kwargs: Passed through to httpx (json, params).

        Returns:
            The envelope's data object, or an empty dict when absent.

        Raises:
            SessionStoreError: On network failure, non-2xx status, non-zero
                code, or a body that is not an envelope.
        """
        if self._client is None:
            raise RuntimeError("SessionStoreClient must be used as an async context manager")
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("Session store %s %s failed: %s", method, path, exc)
            raise SessionStoreError(self._t(fallback_key)) from exc
        return self._unwrap(resp, fallback_key)

    def _unwrap(self, resp: httpx.Response, fallback_key: str) -> dict:
        """Validate status and envelope code, returning the data payload."""
        try:
            body = resp.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            if resp.status_code >= 400:
                raise SessionStoreError(
                    sanitize_error_message(resp.text.strip()) or self._t(fallback_key),
                    status_code=resp.status_code,
                )
            raise SessionStoreError(
                self._t("Errors.MalformedResponse"), status_code=resp.status_code,
            )

        code = body.get("code", 0)
        message = body.get("message")
        if resp.status_code >= 400 or code != 0:
            raise SessionStoreError(
                str(message) if message else self._t(fallback_key),
                status_code=resp.status_code,
                code=code if code != 0 else None,
            )

        data = body.get("data")
        return data if isinstance(data, dict) else {}

    def _parse(self, build: Callable[[dict], T], payload: dict) -> T:
        """Build a model from a payload, treating missing or mistyped fields as malformed."""
        try:
            return build(payload)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed session store payload: %s", exc)
            raise SessionStoreError(self._t("Errors.MalformedResponse")) from exc

    async def list_sessions(self, mode: ChatMode) -> list[ChatSession]:
        """List sessions via GET /sessions?type=.

        Args:
            mode: Which session type to list.

        Returns:
            Sessions in server order.
        """
        data = await self._request(
            "GET", "/sessions", "Errors.FetchSessions", params={"type": ChatMode(mode).value},
        )
        return [
            self._parse(ChatSession.from_api, s)
            for s in data.get("sessions") or [] if isinstance(s, dict)
        ]

    async def get_session_detail(self, session_id: str) -> SessionDetail:
        """Fetch one session and its messages via GET /session/{id}."""
        data = await self._request("GET", f"/session/{session_id}", "Errors.FetchSessionDetail")
        return self._parse(SessionDetail.from_api, data)

    async def create_session(self) -> ChatSession:
        """Create a global session via POST /sessions.

        Copilot sessions are never created through this path; they come
        from get_or_create_copilot_session().
        """
        data = await self._request(
            "POST", "/sessions", "Errors.CreateSession", json={"type": ChatMode.GLOBAL.value},
        )
        session = data.get("session")
        if not isinstance(session, dict):
            raise SessionStoreError(self._t("Errors.MalformedResponse"))
        return self._parse(ChatSession.from_api, session)

    async def rename_session(self, session_id: str, title: str) -> None:
        """Rename a session via PATCH /session/{id}."""
        await self._request(
            "PATCH", f"/session/{session_id}", "Errors.RenameSession", json={"title": title},
        )

    async def delete_session(self, session_id: str) -> None:
        """Archive a session via DELETE /session/{id}."""
        await self._request("DELETE", f"/session/{session_id}", "Errors.DeleteSession")

    async def get_or_create_copilot_session(self, envelope: CopilotEnvelope) -> ChatSession:
        """Get or create the copilot session for envelope.meta.tabId.

        Args:
            envelope: Envelope whose meta carries the owning tab id.

        Returns:
            The session bound to the tab.
        """
        data = await self._request(
            "POST", "/session/copilot", "Errors.FetchCopilotSession",
            json={"envelope": envelope.model_dump(by_alias=True, mode="json")},
        )
        session = data.get("session")
        if not isinstance(session, dict):
            raise SessionStoreError(self._t("Errors.MalformedResponse"))
        return self._parse(ChatSession.from_api, session)

    async def get_copilot_session(self, tab_id: str) -> ChatSession | None:
        """Look up the copilot session for a tab via GET /session/copilot.

        Returns:
            The session, or None when the tab has none yet.
        """
        data = await self._request(
            "GET", "/session/copilot", "Errors.FetchCopilotSession", params={"tabId": tab_id},
        )
        session = data.get("session")
        return self._parse(ChatSession.from_api, session) if isinstance(session, dict) else None
