"""Conversation thread controller.

Owns the message list of the bound conversation and the streaming send
protocol: the user's message is appended optimistically, the request is
streamed through ChatStreamClient under a CancellationToken, and once the
stream is drained the authoritative messages are reloaded from the session
store. A failed send removes the optimistic message again; a cancelled one
is left as is.
"""

import asyncio
import inspect
import logging
import secrets
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from enum import Enum

from src.chat.cancellation import CancellationToken, RequestAborted
from src.chat.models import ChatMessage, ChatMode
from src.chat.notifications import LoggingNotifier, Notifier
from src.chat.stream_client import ChatRequest, ChatStreamClient, ChatStreamError
from src.copilot.i18n import Translator, translate as default_translate
from src.copilot.models import CopilotEnvelope, SqlEnvelope, TableEnvelope

logger = logging.getLogger(__name__)

COPILOT_IDENTITY_PREFIX = "copilot:"


class ThreadStatus(str, Enum):
    READY = "ready"
    SUBMITTED = "submitted"
    STREAMING = "streaming"
    ERROR = "error"

    @property
    def active(self) -> bool:
        return self in (ThreadStatus.SUBMITTED, ThreadStatus.STREAMING)


@dataclass
class SendOptions:
    """Per-send overrides."""

    model: str | None = None
    web_search: bool = False


@dataclass(frozen=True)
class ThreadState:
    identity: str | None = None
    messages: tuple[ChatMessage, ...] = ()
    input: str = ""
    is_streaming: bool = False
    status: ThreadStatus = ThreadStatus.READY

    @property
    def can_send(self) -> bool:
        return self.identity is not None and not self.is_streaming and bool(self.input.strip())


def thread_identity(mode: ChatMode, session_id: str | None, tab_id: str | None) -> str | None:
    """Identity a thread is bound to.

    The session id when there is one; in copilot mode a tab without a
    session yet is addressed as ``copilot:<tabId>``.
    """
    if session_id:
        return session_id
    if mode == ChatMode.COPILOT and tab_id:
        return f"{COPILOT_IDENTITY_PREFIX}{tab_id}"
    return None


def _new_request_id() -> str:
    return f"req_{int(time.time() * 1000)}"


def _new_message_id() -> str:
    return f"msg_{secrets.token_hex(6)}"


class ThreadController:
    """Drives one conversation thread.

    Args:
        client: Opened stream client.
        mode: Chat mode of the owning panel.
        on_reload: Reloads the authoritative messages after a stream.
        on_session_bound: Receives the session id the server created for a
            copilot tab on its first message.
        on_activity: Called once each time the thread settles after a send.
        on_chunk: Receives raw stream chunks for rendering.
        notifier: Sink for user-facing errors.
        translate: Localization function.
    """

    def __init__(
        self,
        client: ChatStreamClient,
        mode: ChatMode = ChatMode.GLOBAL,
        on_reload: Callable[[], Awaitable[None]] | None = None,
        on_session_bound: Callable[[str], Awaitable[None]] | None = None,
        on_activity: Callable[[], object] | None = None,
        on_chunk: Callable[[bytes], None] | None = None,
        notifier: Notifier | None = None,
        translate: Translator | None = None,
    ):
        self._client = client
        self._mode = ChatMode(mode)
        self._on_reload = on_reload
        self._on_session_bound = on_session_bound
        self._on_activity = on_activity
        self._on_chunk = on_chunk
        self._notifier = notifier or LoggingNotifier()
        self._t = translate or default_translate

        self._state = ThreadState()
        self._listeners: list[Callable[[ThreadState], None]] = []
        self._token: CancellationToken | None = None
        self._background: set[asyncio.Future] = set()

        self._envelope: CopilotEnvelope | None = None
        self._tab_id: str | None = None
        self._database: str | None = None
        self._table: str | None = None
        self._connection_id: str | None = None

    @property
    def state(self) -> ThreadState:
        return self._state

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._state.messages)

    def subscribe(self, listener: Callable[[ThreadState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes) -> None:
        previous = self._state
        self._state = replace(previous, **changes)
        if previous.status.active and not self._state.status.active:
            self._signal_activity()
        for listener in list(self._listeners):
            listener(self._state)

    def _signal_activity(self) -> None:
        if self._on_activity is None:
            return
        result = self._on_activity()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._background.add(task)
            task.add_done_callback(self._background.discard)

    async def wait_idle(self) -> None:
        """Wait for activity callbacks that are still running."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # -- binding --

    def set_context(
        self,
        envelope: CopilotEnvelope | None = None,
        database: str | None = None,
        table: str | None = None,
        connection_id: str | None = None,
    ) -> None:
        """Set the side-channel context sent with each message.

        In copilot mode the envelope supplies the tab, database and table;
        otherwise the ambient editor values are used.
        """
        self._envelope = envelope
        self._database = database
        self._table = table
        self._connection_id = connection_id

    def set_session(
        self,
        session_id: str | None,
        initial_messages: list[ChatMessage] | tuple[ChatMessage, ...],
        tab_id: str | None = None,
    ) -> None:
        """Bind the thread to a session and its latest known messages.

        A different identity cancels any in-flight request and resets the
        input. The same identity only replaces the messages, so a draft in
        progress survives a background reload.
        """
        self._tab_id = tab_id
        identity = thread_identity(self._mode, session_id, tab_id)
        messages = tuple(initial_messages or ())
        if identity != self._state.identity:
            logger.debug("Thread rebinding from %s to %s", self._state.identity, identity)
            self._cancel_inflight()
            self._set(
                identity=identity,
                messages=messages,
                input="",
                is_streaming=False,
                status=ThreadStatus.READY,
            )
            return
        self._set(messages=messages)

    def set_input(self, value: str) -> None:
        self._set(input=value)

    def _cancel_inflight(self) -> None:
        token, self._token = self._token, None
        if token is not None:
            token.cancel()

    def stop(self) -> None:
        """Abort the in-flight request. The optimistic message is kept."""
        self._cancel_inflight()
        self._set(is_streaming=False, status=ThreadStatus.READY)

    # -- sending --

    def _request_context(self) -> dict:
        envelope = self._envelope if self._mode == ChatMode.COPILOT else None
        tab_id = None
        database = self._database
        table = self._table
        connection_id = self._connection_id
        if self._mode == ChatMode.COPILOT:
            tab_id = (envelope.tab_id if envelope is not None else None) or self._tab_id
        if isinstance(envelope, SqlEnvelope):
            database = envelope.context.baseline.database
            table = None
        elif isinstance(envelope, TableEnvelope):
            database = envelope.context.database
            table = envelope.context.table.name
        if envelope is not None and envelope.connection_id:
            connection_id = envelope.connection_id
        return {
            "tab_id": tab_id,
            "database": database,
            "table": table,
            "connection_id": connection_id,
        }

    async def send(self, options: SendOptions | None = None) -> None:
        """Send the current input and drain the reply.

        Does nothing when no session is bound, the input is blank, or a send
        is already streaming. Returns once the request has settled.
        """
        options = options or SendOptions()
        identity = self._state.identity
        if identity is None:
            self._notifier.error(self._t("Errors.SessionNotSelected"))
            return
        text = self._state.input.strip()
        if not text or self._state.is_streaming:
            return

        user_message = ChatMessage.user_text(_new_message_id(), text)
        messages = self._state.messages + (user_message,)
        token = CancellationToken()
        self._token = token
        self._set(
            messages=messages,
            input="",
            is_streaming=True,
            status=ThreadStatus.SUBMITTED,
        )

        request = ChatRequest(
            id=_new_request_id(),
            chat_id=identity,
            messages=list(messages),
            model=options.model,
            web_search=options.web_search,
            **self._request_context(),
        )
        task = asyncio.ensure_future(self._client.send(request, token, self._handle_chunk))
        token.add_callback(task.cancel)

        try:
            result = await task
            token.raise_if_cancelled()
            if self._state.identity != identity:
                logger.debug("Thread moved on from %s; skipping reload", identity)
                return
            if result.chat_id and identity.startswith(COPILOT_IDENTITY_PREFIX):
                self._set(identity=result.chat_id)
                logger.info("Copilot thread %s bound to session %s", identity, result.chat_id)
                if self._on_session_bound is not None:
                    await self._on_session_bound(result.chat_id)
            elif self._on_reload is not None:
                await self._on_reload()
        except (RequestAborted, asyncio.CancelledError):
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            logger.debug("Send for %s was cancelled", identity)
        except Exception as exc:
            if isinstance(exc, ChatStreamError):
                message = exc.message or self._t("Errors.SendFailed")
                logger.warning("Send for %s failed: %s", identity, message)
            else:
                message = self._t("Errors.SendFailed")
                logger.error("Unexpected error sending to %s: %s", identity, exc, exc_info=True)
            self._rollback(identity, user_message)
            self._notifier.error(message)
        finally:
            if self._token is token:
                self._token = None
                status = self._state.status
                self._set(
                    is_streaming=False,
                    status=ThreadStatus.READY if status.active else status,
                )

    def _handle_chunk(self, chunk: bytes) -> None:
        if self._state.status == ThreadStatus.SUBMITTED:
            self._set(status=ThreadStatus.STREAMING)
        if self._on_chunk is not None:
            self._on_chunk(chunk)

    def _rollback(self, identity: str, user_message: ChatMessage) -> None:
        """Remove the optimistic message if the thread is still on identity."""
        if self._state.identity != identity:
            return
        messages = self._state.messages
        if messages and messages[-1].id == user_message.id:
            messages = messages[:-1]
        else:
            messages = tuple(m for m in messages if m.id != user_message.id)
        self._set(messages=messages, status=ThreadStatus.ERROR)
