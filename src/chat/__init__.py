"""Chat sessions and conversation threads.

This package provides:
- SessionStoreClient / ChatStreamClient: HTTP boundaries for sessions and /chat
- GlobalSessionLifecycle / CopilotSessionLifecycle: session state machines
- ThreadController: optimistic, cancellable message sending
- ChatPanel: wiring of one lifecycle to one thread
"""

from src.chat.cancellation import CancellationToken, RequestAborted
from src.chat.lifecycle import (
    CopilotSessionLifecycle,
    GlobalSessionLifecycle,
    SessionLifecycle,
    SessionState,
    create_session_lifecycle,
    plan_selection_change,
    plan_tab_change,
)
from src.chat.models import (
    ChatMessage,
    ChatMode,
    ChatSession,
    SessionDetail,
    normalize_session_title,
    sessions_for_display,
    text_of,
)
from src.chat.notifications import LoggingNotifier, Notifier, RecordingNotifier
from src.chat.panel import ChatPanel
from src.chat.store_client import SessionStore, SessionStoreClient, SessionStoreError
from src.chat.stream_client import ChatRequest, ChatStreamClient, ChatStreamError, ChatStreamResult
from src.chat.thread import SendOptions, ThreadController, ThreadState, ThreadStatus, thread_identity

__all__ = [
    "CancellationToken",
    "ChatMessage",
    "ChatMode",
    "ChatPanel",
    "ChatRequest",
    "ChatSession",
    "ChatStreamClient",
    "ChatStreamError",
    "ChatStreamResult",
    "CopilotSessionLifecycle",
    "GlobalSessionLifecycle",
    "LoggingNotifier",
    "Notifier",
    "RecordingNotifier",
    "RequestAborted",
    "SendOptions",
    "SessionDetail",
    "SessionLifecycle",
    "SessionState",
    "SessionStore",
    "SessionStoreClient",
    "SessionStoreError",
    "ThreadController",
    "ThreadState",
    "ThreadStatus",
    "create_session_lifecycle",
    "normalize_session_title",
    "plan_selection_change",
    "plan_tab_change",
    "sessions_for_display",
    "text_of",
    "thread_identity",
]
