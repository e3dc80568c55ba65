"""Tests for chat session and message models."""

import pytest

from src.chat.models import (
    ChatMessage,
    ChatMode,
    ChatSession,
    SessionDetail,
    normalize_session_title,
    sessions_for_display,
    text_of,
)


class TestChatSession:
    """Construction from API payloads."""

    def test_from_api_maps_camel_case(self):
        session = ChatSession.from_api({
            "id": "s1",
            "type": "copilot",
            "title": "Orders",
            "tabId": "tab-1",
            "connectionId": "conn",
            "activeDatabase": "db",
            "lastMessageAt": "2026-01-01T00:00:00Z",
            "unexpected": True,
        })
        assert session.type == ChatMode.COPILOT
        assert session.tab_id == "tab-1"
        assert session.connection_id == "conn"
        assert session.active_database == "db"
        assert session.last_message_at == "2026-01-01T00:00:00Z"

    def test_unknown_type_is_global(self):
        assert ChatSession.from_api({"id": "s1", "type": "other"}).type == ChatMode.GLOBAL

    def test_with_title_copies(self):
        session = ChatSession(id="s1", type=ChatMode.GLOBAL, title="old")
        renamed = session.with_title("new")
        assert renamed.title == "new"
        assert session.title == "old"


class TestChatMessage:
    """parts normalization."""

    def test_list_parts_kept(self):
        msg = ChatMessage.from_api({"id": "m1", "role": "assistant", "parts": [{"type": "text", "text": "hi"}]})
        assert msg.parts == [{"type": "text", "text": "hi"}]
        assert msg.metadata is None

    def test_string_parts_become_text_part(self):
        msg = ChatMessage.from_api({"id": "m1", "role": "user", "parts": "hello"})
        assert msg.parts == [{"type": "text", "text": "hello"}]

    @pytest.mark.parametrize("parts", [None, 5, {"type": "text"}])
    def test_other_parts_become_empty(self, parts):
        assert ChatMessage.from_api({"id": "m1", "role": "user", "parts": parts}).parts == []

    def test_metadata_copied_when_present(self):
        msg = ChatMessage.from_api({"id": "m1", "role": "user", "parts": [], "metadata": {"k": 1}})
        assert msg.to_api()["metadata"] == {"k": 1}

    def test_text_joins_text_parts(self):
        msg = ChatMessage(id="m", role="assistant", parts=[
            {"type": "text", "text": "a"},
            {"type": "tool-call", "name": "run"},
            {"type": "text", "text": "b"},
        ])
        assert msg.text == "ab"
        assert text_of(msg) == "ab"

    def test_user_text(self):
        msg = ChatMessage.user_text("m1", "hi")
        assert msg.to_api() == {"id": "m1", "role": "user", "parts": [{"type": "text", "text": "hi"}]}


class TestSessionDetail:
    """Detail payloads."""

    def test_from_api(self):
        detail = SessionDetail.from_api({
            "session": {"id": "s1", "type": "global"},
            "messages": [{"id": "m1", "role": "user", "parts": "x"}, "junk"],
        })
        assert detail.session.id == "s1"
        assert [m.id for m in detail.messages] == ["m1"]

    def test_missing_fields(self):
        detail = SessionDetail.from_api({})
        assert detail.session is None
        assert detail.messages == []


class TestTitles:
    """Display title normalization."""

    @pytest.mark.parametrize("title,expected", [
        (None, "Untitled"),
        ("", "Untitled"),
        ("   ", "Untitled"),
        ("  Orders ", "Orders"),
    ])
    def test_normalize(self, title, expected):
        assert normalize_session_title(title, "Untitled") == expected

    def test_sessions_for_display(self):
        sessions = [
            ChatSession(id="a", type=ChatMode.GLOBAL, title=" "),
            ChatSession(id="b", type=ChatMode.GLOBAL, title="B"),
        ]
        assert [s.title for s in sessions_for_display(sessions, "Untitled")] == ["Untitled", "B"]
        assert sessions[0].title == " "
