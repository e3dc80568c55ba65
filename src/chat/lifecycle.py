"""Chat session lifecycle: session list, selection, and copilot tab binding.

Two variants share one interface. GlobalSessionLifecycle manages a list of
user-named sessions with create, select, rename and delete. In copilot mode
there is no list: CopilotSessionLifecycle binds at most one session to the
active editor tab and resolves it whenever the tab changes. Operations that
do not exist in copilot mode report an "unsupported" notice and raise.

State is published as an immutable SessionState snapshot. Reactions to
selection and tab changes are planned by pure functions
(plan_selection_change, plan_tab_change) that return command tuples, which
the lifecycle then executes.

Every network call is a suspension point. Results are applied only if the
state that triggered them is still current: list refreshes carry a
generation number, detail fetches are checked against the selected session,
and tab resolutions against the bound tab.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, replace

from src.chat.models import ChatMessage, ChatMode, ChatSession, sessions_for_display
from src.chat.notifications import LoggingNotifier, Notifier
from src.chat.store_client import SessionStore, SessionStoreError
from src.copilot.i18n import Translator, translate as default_translate
from src.copilot.models import CopilotEnvelope
from src.errors import SessionNotFoundError, TitleRequiredError, UnsupportedOperationError

logger = logging.getLogger(__name__)

StateListener = Callable[["SessionState"], None]


@dataclass(frozen=True)
class SessionState:
    """Snapshot of everything the lifecycle owns."""

    mode: ChatMode
    tab_id: str | None = None
    sessions: tuple[ChatSession, ...] = ()
    selected_session_id: str | None = None
    initial_messages: tuple[ChatMessage, ...] = ()
    loading_sessions: bool = False
    loading_messages: bool = False
    creating_session: bool = False
    editing_session_id: str | None = None
    editing_value: str = ""
    rename_submitting_id: str | None = None
    delete_target: ChatSession | None = None
    deleting: bool = False

    def find(self, session_id: str | None) -> ChatSession | None:
        return next((s for s in self.sessions if s.id == session_id), None)


# --- Commands -------------------------------------------------------------


@dataclass(frozen=True)
class FetchDetail:
    session_id: str


@dataclass(frozen=True)
class ClearMessages:
    pass


@dataclass(frozen=True)
class ResetSessionState:
    """Drop sessions, selection and messages; used on tab changes."""

    tab_id: str | None = None


@dataclass(frozen=True)
class ResolveTab:
    tab_id: str


Command = FetchDetail | ClearMessages | ResetSessionState | ResolveTab


def plan_selection_change(previous_id: str | None, new_id: str | None) -> tuple[Command, ...]:
    """Commands to run when the selected session id changes.

    Args:
        previous_id: Selection before the change.
        new_id: Selection after the change.

    Returns:
        Nothing when unchanged, ClearMessages when deselected, otherwise a
        FetchDetail for the new selection.
    """
    if previous_id == new_id:
        return ()
    if new_id is None:
        return (ClearMessages(),)
    return (FetchDetail(new_id),)


def plan_tab_change(
    previous_tab_id: str | None,
    new_tab_id: str | None,
    has_selection: bool,
) -> tuple[Command, ...]:
    """Commands to run when the copilot tab id is (re)observed.

    An absent tab clears everything. A new tab resets state before it is
    resolved, so a previous tab's session is never shown under the new tab.
    The same tab with a selection already in place needs no work.
    """
    if new_tab_id is None:
        return (ResetSessionState(None),)
    if new_tab_id != previous_tab_id:
        return (ResetSessionState(new_tab_id), ResolveTab(new_tab_id))
    if has_selection:
        return ()
    return (ResolveTab(new_tab_id),)


# --- Lifecycle --------------------------------------------------------------


class SessionLifecycle(ABC):
    """Shared state handling for both lifecycle variants.

    Subclasses provide refresh() and may override the session-management
    operations; the defaults report them as unsupported.
    """

    mode: ChatMode

    def __init__(
        self,
        store: SessionStore,
        notifier: Notifier | None = None,
        translate: Translator | None = None,
    ):
        self._store = store
        self._notifier = notifier or LoggingNotifier()
        self._t = translate or default_translate
        self._state = SessionState(mode=self.mode)
        self._listeners: list[StateListener] = []
        self._list_generation = 0
        self._list_inflight = 0
        self._detail_generation = 0

    # -- state --

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def selected_session_id(self) -> str | None:
        return self._state.selected_session_id

    def sessions_for_display(self) -> list[ChatSession]:
        """Sessions with blank titles shown as the localized fallback."""
        return sessions_for_display(list(self._state.sessions), self._t("Sessions.Untitled"))

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener for state snapshots.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, **changes) -> None:
        new_state = replace(self._state, **changes)
        if new_state == self._state:
            return
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)

    # -- selection and detail --

    async def _select(self, session_id: str | None) -> None:
        previous = self._state.selected_session_id
        if previous != session_id:
            # messages of the previous session must never show under the new id
            self._set(selected_session_id=session_id, initial_messages=())
        await self.on_selected_session_changed(previous, session_id)

    async def on_selected_session_changed(
        self, previous_id: str | None, new_id: str | None,
    ) -> None:
        """Run the commands planned for a selection change."""
        await self._execute(plan_selection_change(previous_id, new_id))

    async def _execute(self, commands: tuple[Command, ...]) -> None:
        for command in commands:
            if isinstance(command, FetchDetail):
                await self._fetch_detail(command.session_id)
            elif isinstance(command, ClearMessages):
                self._detail_generation += 1
                self._set(initial_messages=(), loading_messages=False)
            elif isinstance(command, ResetSessionState):
                self._list_generation += 1
                self._detail_generation += 1
                self._set(
                    tab_id=command.tab_id,
                    sessions=(),
                    selected_session_id=None,
                    initial_messages=(),
                    loading_sessions=False,
                    loading_messages=False,
                )
            elif isinstance(command, ResolveTab):
                await self._resolve_tab(command.tab_id)

    async def _resolve_tab(self, tab_id: str) -> None:
        raise NotImplementedError(f"{type(self).__name__} has no tab resolution")

    async def _fetch_detail(self, session_id: str) -> None:
        """Load a session's detail and messages into state.

        The result is dropped when the selection moved on while the request
        was in flight. On failure the messages are cleared but the session
        stays selected.
        """
        self._detail_generation += 1
        generation = self._detail_generation
        self._set(loading_messages=True)

        try:
            detail = await self._store.get_session_detail(session_id)
        except SessionStoreError as exc:
            if not self._detail_is_current(generation, session_id):
                logger.debug("Discarding failed detail fetch for stale session %s", session_id)
                return
            logger.warning("Fetching session %s failed: %s", session_id, exc.message)
            self._set(initial_messages=(), loading_messages=False)
            self._notifier.error(exc.message or self._t("Errors.FetchSessionDetail"))
            return

        if not self._detail_is_current(generation, session_id):
            logger.debug("Discarding detail for stale session %s", session_id)
            return

        sessions = self._state.sessions
        if detail.session is not None:
            merged = detail.session
            if any(s.id == merged.id for s in sessions):
                sessions = tuple(merged if s.id == merged.id else s for s in sessions)
            else:
                sessions = (merged,) + sessions
        self._set(
            sessions=sessions,
            initial_messages=tuple(detail.messages),
            loading_messages=False,
        )

    def _detail_is_current(self, generation: int, session_id: str) -> bool:
        return (
            generation == self._detail_generation
            and self._state.selected_session_id == session_id
        )

    async def reload_messages(self) -> None:
        """Re-fetch the authoritative messages of the selected session."""
        session_id = self._state.selected_session_id
        if session_id is not None:
            await self._fetch_detail(session_id)

    async def bind_session(self, session_id: str) -> None:
        """Select a session the server reported for the current thread.

        Used when a send created the session lazily; the detail is always
        fetched, even if the id was already selected.
        """
        logger.info("Binding %s session %s", self.mode.value, session_id)
        if self._state.selected_session_id == session_id:
            await self._fetch_detail(session_id)
        else:
            await self._select(session_id)

    # -- mode-specific surface --

    @abstractmethod
    async def refresh(self) -> None:
        """Reload sessions from the store."""

    async def on_conversation_activity(self) -> None:
        """React to a finished conversation turn."""

    async def on_envelope_changed(self, envelope: CopilotEnvelope | None) -> None:
        """React to a new copilot envelope."""

    def _unsupported(self, operation: str, message_key: str, level: str = "error"):
        message = self._t(message_key)
        if level == "info":
            self._notifier.info(message)
        else:
            self._notifier.error(message)
        return UnsupportedOperationError(operation, message)

    async def select_session(self, session_id: str) -> None:
        logger.debug("Ignoring manual selection of %s in %s mode", session_id, self.mode.value)

    async def create_session(self) -> ChatSession | None:
        raise self._unsupported("create", "Sessions.CopilotAutoCreate", level="info")

    def start_rename(self, session_id: str) -> None:
        raise self._unsupported("rename", "Errors.CopilotRenameUnsupported")

    def change_rename(self, value: str) -> None:
        raise self._unsupported("rename", "Errors.CopilotRenameUnsupported")

    def cancel_rename(self) -> None:
        raise self._unsupported("rename", "Errors.CopilotRenameUnsupported")

    async def submit_rename(self) -> None:
        raise self._unsupported("rename", "Errors.CopilotRenameUnsupported")

    async def handle_rename_key(self, key: str) -> None:
        raise self._unsupported("rename", "Errors.CopilotRenameUnsupported")

    def request_delete(self, session_id: str) -> None:
        raise self._unsupported("delete", "Errors.CopilotDeleteUnsupported")

    def close_delete_dialog(self, force: bool = False) -> bool:
        raise self._unsupported("delete", "Errors.CopilotDeleteUnsupported")

    async def confirm_delete(self) -> None:
        raise self._unsupported("delete", "Errors.CopilotDeleteUnsupported")


class GlobalSessionLifecycle(SessionLifecycle):
    """Multi-session list with user-driven create, rename and delete."""

    mode = ChatMode.GLOBAL

    def __init__(
        self,
        store: SessionStore,
        notifier: Notifier | None = None,
        translate: Translator | None = None,
    ):
        super().__init__(store, notifier, translate)
        self._rename_submitted = False

    async def refresh(self, preferred_id: str | None = None) -> None:
        """Fetch the session list and reconcile the selection.

        The previously selected session stays selected when it is still
        listed, otherwise the first session is selected. If the user changed
        the selection while the list was loading, that newer selection is
        preferred. A failed refresh leaves the current list untouched.

        Args:
            preferred_id: Session to select when present in the new list.
        """
        self._list_generation += 1
        generation = self._list_generation
        selected_at_start = self._state.selected_session_id
        preferred = preferred_id or selected_at_start

        self._list_inflight += 1
        self._set(loading_sessions=True)
        try:
            try:
                listed = await self._store.list_sessions(ChatMode.GLOBAL)
            except SessionStoreError as exc:
                if generation != self._list_generation:
                    logger.debug("Discarding failed stale session list refresh")
                    return
                logger.warning("Fetching sessions failed: %s", exc.message)
                self._notifier.error(exc.message or self._t("Errors.FetchSessions"))
                return

            if generation != self._list_generation:
                logger.debug(
                    "Discarding stale session list (generation %d, current %d)",
                    generation, self._list_generation,
                )
                return

            current = self._state.selected_session_id
            if current != selected_at_start:
                preferred = current

            self._set(sessions=tuple(listed))
            if not listed:
                await self._select(None)
                return
            if preferred and any(s.id == preferred for s in listed):
                await self._select(preferred)
            else:
                await self._select(listed[0].id)
        finally:
            self._list_inflight -= 1
            if self._list_inflight == 0:
                self._set(loading_sessions=False)

    async def on_conversation_activity(self) -> None:
        """Refresh ordering and titles, keeping the current selection."""
        await self.refresh(self._state.selected_session_id)

    async def select_session(self, session_id: str) -> None:
        await self._select(session_id)

    async def create_session(self) -> ChatSession | None:
        """Create a global session and select it.

        A create while another is in flight is ignored.

        Returns:
            The created session, or None when ignored or failed.
        """
        if self._state.creating_session:
            return None
        self._set(creating_session=True)
        try:
            created = await self._store.create_session()
        except SessionStoreError as exc:
            logger.warning("Creating session failed: %s", exc.message)
            self._notifier.error(exc.message or self._t("Errors.CreateSession"))
            return None
        finally:
            self._set(creating_session=False)

        logger.info("Created session %s", created.id)
        await self.refresh(created.id)
        return created

    # -- rename --

    def _require_listed(self, session_id: str | None, message_key: str) -> ChatSession:
        target = self._state.find(session_id)
        if target is None:
            message = self._t(message_key)
            self._notifier.error(message)
            raise SessionNotFoundError(str(session_id), message)
        return target

    def start_rename(self, session_id: str) -> None:
        """Open the inline editor seeded with the current title.

        Raises:
            SessionNotFoundError: If the session is not in the local list.
        """
        target = self._require_listed(session_id, "Errors.SessionNotFoundRename")
        if self._state.editing_session_id != session_id:
            self._rename_submitted = False
        self._set(
            editing_session_id=session_id,
            editing_value=(target.title or "").strip() or self._t("Sessions.DefaultRename"),
        )

    def change_rename(self, value: str) -> None:
        self._set(editing_value=value)

    def cancel_rename(self) -> None:
        self._set(editing_session_id=None, editing_value="")

    async def handle_rename_key(self, key: str) -> None:
        """Enter submits and Escape cancels; other keys are ignored."""
        if key == "Enter":
            await self.submit_rename()
        elif key == "Escape":
            self.cancel_rename()

    async def submit_rename(self) -> None:
        """Submit the inline edit. Blur and Enter both land here.

        The title is rewritten locally before the request; on failure the
        list is restored to its pre-edit snapshot. Repeated submits of the
        same edit are ignored.

        Raises:
            TitleRequiredError: If the trimmed title is empty. Nothing is
                sent and the list is unchanged.
            SessionNotFoundError: If the edited session left the list.
        """
        session_id = self._state.editing_session_id
        if session_id is None or self._rename_submitted:
            return

        title = self._state.editing_value.strip()
        if not title:
            message = self._t("Errors.SessionNameRequired")
            self._notifier.error(message)
            raise TitleRequiredError(message)
        self._require_listed(session_id, "Errors.SessionNotFoundRename")

        self._rename_submitted = True
        snapshot = self._state.sessions
        self._list_generation += 1
        self._set(
            editing_session_id=None,
            editing_value="",
            rename_submitting_id=session_id,
            sessions=tuple(s.with_title(title) if s.id == session_id else s for s in snapshot),
        )

        try:
            try:
                await self._store.rename_session(session_id, title)
            except SessionStoreError as exc:
                logger.warning("Renaming session %s failed: %s", session_id, exc.message)
                self._list_generation += 1
                self._set(sessions=snapshot)
                self._notifier.error(exc.message or self._t("Errors.RenameSession"))
                return
            logger.info("Renamed session %s", session_id)
            await self.refresh()
        finally:
            if self._state.rename_submitting_id == session_id:
                self._set(rename_submitting_id=None)

    # -- delete --

    def request_delete(self, session_id: str) -> None:
        """Open the delete confirmation for a listed session.

        Raises:
            SessionNotFoundError: If the session is not in the local list.
        """
        target = self._require_listed(session_id, "Errors.SessionNotFoundDelete")
        self._set(delete_target=target)

    def close_delete_dialog(self, force: bool = False) -> bool:
        """Dismiss the delete confirmation.

        Returns:
            False if a delete is in flight and force is not set.
        """
        if self._state.deleting and not force:
            return False
        self._set(delete_target=None)
        return True

    async def confirm_delete(self) -> None:
        """Delete the targeted session and refresh the list.

        If the deleted session was selected, the selection and messages are
        cleared and the refresh does not prefer any session.
        """
        target = self._state.delete_target
        if target is None:
            return

        session_id = target.id
        self._set(deleting=True)
        try:
            try:
                await self._store.delete_session(session_id)
            except SessionStoreError as exc:
                logger.warning("Deleting session %s failed: %s", session_id, exc.message)
                self._notifier.error(exc.message or self._t("Errors.DeleteSession"))
                return

            logger.info("Deleted session %s", session_id)
            selected = self._state.selected_session_id
            was_selected = selected == session_id
            self._list_generation += 1
            self._set(sessions=tuple(s for s in self._state.sessions if s.id != session_id))
            if was_selected:
                await self._select(None)
            self._notifier.success(self._t("Sessions.DeleteSuccess"))
            await self.refresh(None if was_selected else selected)
            self.close_delete_dialog(force=True)
        finally:
            self._set(deleting=False)


class CopilotSessionLifecycle(SessionLifecycle):
    """At most one session, bound to the active editor tab.

    The session is looked up by tab id. When a tab has none, the lifecycle
    stays unselected until a first message creates it and bind_session()
    is called.
    """

    mode = ChatMode.COPILOT

    def __init__(
        self,
        store: SessionStore,
        notifier: Notifier | None = None,
        translate: Translator | None = None,
    ):
        super().__init__(store, notifier, translate)
        self._envelope: CopilotEnvelope | None = None
        self._bound_tab_id: str | None = None

    @property
    def envelope(self) -> CopilotEnvelope | None:
        return self._envelope

    @property
    def tab_id(self) -> str | None:
        return self._bound_tab_id

    async def on_envelope_changed(self, envelope: CopilotEnvelope | None) -> None:
        """Track the latest envelope and follow its tab id."""
        self._envelope = envelope
        await self.on_tab_id_changed(envelope.tab_id if envelope is not None else None)

    async def on_tab_id_changed(self, tab_id: str | None) -> None:
        commands = plan_tab_change(
            self._bound_tab_id, tab_id, self._state.selected_session_id is not None,
        )
        self._bound_tab_id = tab_id
        await self._execute(commands)

    async def refresh(self) -> None:
        """Re-run tab resolution for the current tab."""
        await self.on_tab_id_changed(self._bound_tab_id)

    async def _resolve_tab(self, tab_id: str) -> None:
        """Look up the tab's session and select it if one exists."""
        self._set(loading_sessions=True)
        try:
            try:
                session = await self._store.get_copilot_session(tab_id)
            except SessionStoreError as exc:
                if tab_id != self._bound_tab_id:
                    logger.debug("Discarding failed resolution for stale tab %s", tab_id)
                    return
                logger.warning("Resolving copilot session for tab %s failed: %s", tab_id, exc.message)
                self._notifier.error(exc.message or self._t("Errors.FetchCopilotSession"))
                return

            if tab_id != self._bound_tab_id:
                logger.debug("Discarding copilot session for stale tab %s", tab_id)
                return
            if session is None:
                logger.debug("No copilot session yet for tab %s", tab_id)
                return

            logger.info("Resolved copilot session %s for tab %s", session.id, tab_id)
            self._set(sessions=(session,))
            await self._select(session.id)
        finally:
            if tab_id == self._bound_tab_id:
                self._set(loading_sessions=False)


def create_session_lifecycle(
    mode: ChatMode | str,
    store: SessionStore,
    notifier: Notifier | None = None,
    translate: Translator | None = None,
) -> SessionLifecycle:
    """Build the lifecycle variant for a chat mode."""
    if ChatMode(mode) == ChatMode.COPILOT:
        return CopilotSessionLifecycle(store, notifier, translate)
    return GlobalSessionLifecycle(store, notifier, translate)
