"""Chat session and message data models.

Aligned with the workbench session API payloads. Extra fields from API
responses are accepted and ignored via from_api().
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ChatMode(str, Enum):
    """Which conversation scope a chat panel is bound to.

    GLOBAL: many user-named sessions per user, listed in a sidebar.
    COPILOT: exactly one auto-named session per (team, user, tab).
    """

    GLOBAL = "global"
    COPILOT = "copilot"


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


@dataclass
class ChatSession:
    """A persisted chat conversation.

    A copilot session is addressable by its owning tab id; a global session
    only by id. Timestamps are ISO-8601 strings as returned by the API.
    """

    id: str
    type: ChatMode
    title: str | None = None
    tab_id: str | None = None
    connection_id: str | None = None
    active_database: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    last_message_at: str | None = None
    archived_at: str | None = None
    metadata: dict | None = None

    @classmethod
    def from_api(cls, data: dict) -> "ChatSession":
        """Construct from API JSON, tolerating extra fields."""
        raw_type = data.get("type") or ChatMode.GLOBAL.value
        try:
            session_type = ChatMode(raw_type)
        except ValueError:
            session_type = ChatMode.GLOBAL
        return cls(
            id=data["id"],
            type=session_type,
            title=data.get("title"),
            tab_id=data.get("tabId"),
            connection_id=data.get("connectionId"),
            active_database=data.get("activeDatabase"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            last_message_at=data.get("lastMessageAt"),
            archived_at=data.get("archivedAt"),
            metadata=data.get("metadata"),
        )

    def with_title(self, title: str | None) -> "ChatSession":
        """Copy of this session with a different title."""
        return ChatSession(**{**self.__dict__, "title": title})


@dataclass
class ChatMessage:
    """A single conversation message.

    parts is the ordered list of typed content fragments (text, tool-call,
    tool-result, reasoning, source reference). Parts are passed through
    untouched; rendering them is the presentation layer's concern.
    """

    id: str
    role: str
    parts: list[dict] = field(default_factory=list)
    metadata: dict | None = None

    @classmethod
    def from_api(cls, data: dict) -> "ChatMessage":
        """Construct from API JSON, normalizing the parts field.

        A string parts value becomes a single text part; anything that is
        neither a list nor a string becomes an empty list.
        """
        raw_parts = data.get("parts")
        if isinstance(raw_parts, list):
            parts = list(raw_parts)
        elif isinstance(raw_parts, str):
            parts = [{"type": "text", "text": raw_parts}]
        else:
            parts = []
        return cls(
            id=str(data["id"]),
            role=str(data.get("role", MessageRole.USER.value)),
            parts=parts,
            metadata=data.get("metadata") or None,
        )

    @classmethod
    def user_text(cls, message_id: str, text: str) -> "ChatMessage":
        return cls(id=message_id, role=MessageRole.USER.value, parts=[{"type": "text", "text": text}])

    def to_api(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"id": self.id, "role": self.role, "parts": self.parts}
        if self.metadata:
            payload["metadata"] = self.metadata
        return payload

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(
            str(part.get("text", ""))
            for part in self.parts
            if isinstance(part, dict) and part.get("type") == "text"
        )


@dataclass
class SessionDetail:
    """A session together with its authoritative message history."""

    session: ChatSession | None
    messages: list[ChatMessage] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict) -> "SessionDetail":
        session_data = data.get("session")
        raw_messages = data.get("messages")
        return cls(
            session=ChatSession.from_api(session_data) if isinstance(session_data, dict) else None,
            messages=[
                ChatMessage.from_api(m) for m in raw_messages if isinstance(m, dict)
            ] if isinstance(raw_messages, list) else [],
        )


def normalize_session_title(title: str | None, fallback: str) -> str:
    """Trimmed title, or the fallback when the title is blank."""
    trimmed = (title or "").strip()
    return trimmed if trimmed else fallback


def sessions_for_display(sessions: list[ChatSession], fallback: str) -> list[ChatSession]:
    """Sessions with blank titles replaced by the fallback title."""
    return [s.with_title(normalize_session_title(s.title, fallback)) for s in sessions]


def text_of(message: ChatMessage) -> str:
    """Joined text parts of a message."""
    return message.text
