"""Chat panel: one session lifecycle wired to one thread controller.

The panel forwards lifecycle snapshots to the thread (selected session and
its messages), routes thread callbacks back to the lifecycle (reload after a
stream, lazy copilot binding, activity refresh) and rebuilds both when the
chat mode changes.
"""

import logging
from collections.abc import Callable

from src.chat.lifecycle import SessionLifecycle, SessionState, create_session_lifecycle
from src.chat.models import ChatMessage, ChatMode
from src.chat.notifications import LoggingNotifier, Notifier
from src.chat.store_client import SessionStore
from src.chat.stream_client import ChatStreamClient
from src.chat.thread import SendOptions, ThreadController, thread_identity
from src.copilot.i18n import Translator, translate as default_translate
from src.copilot.models import CopilotEnvelope

logger = logging.getLogger(__name__)


class ChatPanel:
    """Coordinates session selection and the active conversation."""

    def __init__(
        self,
        store: SessionStore,
        stream_client: ChatStreamClient,
        mode: ChatMode | str = ChatMode.GLOBAL,
        notifier: Notifier | None = None,
        translate: Translator | None = None,
        on_chunk: Callable[[bytes], None] | None = None,
    ):
        self._store = store
        self._stream_client = stream_client
        self._notifier = notifier or LoggingNotifier()
        self._t = translate or default_translate
        self._on_chunk = on_chunk

        self._envelope: CopilotEnvelope | None = None
        self._database: str | None = None
        self._table: str | None = None
        self._connection_id: str | None = None

        self._mode = ChatMode(mode)
        self._unsubscribe: Callable[[], None] | None = None
        self._pushed_messages: tuple[ChatMessage, ...] | None = None
        self.lifecycle: SessionLifecycle
        self.thread: ThreadController
        self._build()

    @property
    def mode(self) -> ChatMode:
        return self._mode

    def _build(self) -> None:
        self.lifecycle = create_session_lifecycle(self._mode, self._store, self._notifier, self._t)
        self.thread = ThreadController(
            self._stream_client,
            mode=self._mode,
            on_reload=self.lifecycle.reload_messages,
            on_session_bound=self.lifecycle.bind_session,
            on_activity=self.lifecycle.on_conversation_activity,
            on_chunk=self._on_chunk,
            notifier=self._notifier,
            translate=self._t,
        )
        self._apply_context()
        self._pushed_messages = None
        self._unsubscribe = self.lifecycle.subscribe(self._sync_thread)

    def _apply_context(self) -> None:
        self.thread.set_context(
            envelope=self._envelope,
            database=self._database,
            table=self._table,
            connection_id=self._connection_id,
        )

    def _sync_thread(self, state: SessionState) -> None:
        """Push the selected session and its messages into the thread."""
        identity = thread_identity(self._mode, state.selected_session_id, state.tab_id)
        if identity == self.thread.state.identity and state.initial_messages is self._pushed_messages:
            return
        self._pushed_messages = state.initial_messages
        self.thread.set_session(state.selected_session_id, state.initial_messages, tab_id=state.tab_id)

    async def start(self) -> None:
        """Load the initial state for the current mode."""
        if self._mode == ChatMode.COPILOT:
            await self.lifecycle.on_envelope_changed(self._envelope)
        else:
            await self.lifecycle.refresh()

    async def on_envelope_changed(self, envelope: CopilotEnvelope | None) -> None:
        """Follow a new editor/table envelope."""
        self._envelope = envelope
        self._apply_context()
        await self.lifecycle.on_envelope_changed(envelope)

    def set_editor_context(
        self,
        database: str | None = None,
        table: str | None = None,
        connection_id: str | None = None,
    ) -> None:
        """Ambient editor state used outside copilot mode."""
        self._database = database
        self._table = table
        self._connection_id = connection_id
        self._apply_context()

    async def on_mode_changed(self, mode: ChatMode | str) -> None:
        """Switch between global and copilot chat.

        The old thread is unbound, which cancels any in-flight send, and its
        pending activity callbacks finish before a fresh lifecycle and thread
        of the new variant take over.
        """
        mode = ChatMode(mode)
        if mode == self._mode:
            return
        logger.info("Chat mode changed from %s to %s", self._mode.value, mode.value)
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.thread.set_session(None, ())
        await self.thread.wait_idle()
        self._mode = mode
        self._build()
        await self.start()

    async def send(self, text: str, options: SendOptions | None = None) -> None:
        """Send text as the next user message of the bound conversation."""
        self.thread.set_input(text)
        await self.thread.send(options)

    def stop(self) -> None:
        self.thread.stop()

    async def aclose(self) -> None:
        """Unbind the thread and wait for pending activity callbacks."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.thread.set_session(None, ())
        await self.thread.wait_idle()
