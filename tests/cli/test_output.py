"""Tests for CLI output formatters."""

import json

from src.actions.models import ActionContext, ActionResult, Risk
from src.actions.registry import get_quick_action_availability
from src.chat.models import ChatMessage, ChatMode, ChatSession, SessionDetail
from src.cli.output import (
    format_action_list,
    format_action_result,
    format_config,
    format_envelope,
    format_inference,
    format_prompt_context,
    format_session_detail,
    format_sessions_table,
)
from src.copilot.envelope import build_sql_envelope, to_prompt_context
from src.copilot.inference import infer_sql_context
from src.copilot.models import Dialect


def _sessions():
    return [
        ChatSession(id="s1", type=ChatMode.GLOBAL, title="Revenue", updated_at="2026-01-02T03:04:05.678Z"),
        ChatSession(id="s2", type=ChatMode.GLOBAL, title="   "),
    ]


class TestFormatSessions:
    """Tests for session list and detail formatting."""

    def test_table_contains_sessions(self):
        output = format_sessions_table(_sessions(), "New chat", selected_id="s1")
        assert "s1" in output
        assert "Revenue" in output
        assert "New chat" in output
        assert "2026-01-02T03:04:05" in output

    def test_empty(self):
        assert format_sessions_table([], "New chat") == "No sessions found."

    def test_json(self):
        data = json.loads(format_sessions_table(_sessions(), "New chat", as_json=True))
        assert [s["id"] for s in data] == ["s1", "s2"]
        assert data[0]["type"] == "global"
        assert data[1]["title"] == "   "

    def test_detail(self):
        detail = SessionDetail(
            session=ChatSession(id="s1", type=ChatMode.COPILOT, tab_id="tab-1", active_database="sales"),
            messages=[ChatMessage.user_text("m1", "show [tables]")],
        )
        output = format_session_detail(detail, "New chat")
        assert "tab-1" in output
        assert "sales" in output
        assert "show [tables]" in output

    def test_detail_without_messages(self):
        output = format_session_detail(SessionDetail(session=None), "New chat")
        assert "No messages" in output

    def test_detail_json(self):
        detail = SessionDetail(
            session=ChatSession(id="s1", type=ChatMode.GLOBAL),
            messages=[ChatMessage.user_text("m1", "hello")],
        )
        data = json.loads(format_session_detail(detail, "New chat", as_json=True))
        assert data["session"]["id"] == "s1"
        assert data["messages"][0]["parts"] == [{"type": "text", "text": "hello"}]


class TestFormatCopilot:
    """Tests for inference and envelope formatting."""

    def test_inference_table(self):
        inferred = infer_sql_context(Dialect.MYSQL, "SELECT * FROM db1.users")
        output = format_inference(inferred)
        assert "users" in output
        assert "db1" in output
        assert "high" in output

    def test_inference_json(self):
        inferred = infer_sql_context(Dialect.MYSQL, "")
        data = json.loads(format_inference(inferred, as_json=True))
        assert data["confidence"] == "mid"
        assert data["tables"] == []

    def test_envelope_json_uses_wire_names(self):
        envelope = build_sql_envelope("SELECT 1", baseline_database="db", dialect="mysql", meta={"tab_id": "t1"})
        data = json.loads(format_envelope(envelope, as_json=True))
        assert data["surface"] == "sql"
        assert data["meta"]["tabId"] == "t1"
        assert data["context"]["draft"]["editorText"] == "SELECT 1"

    def test_envelope_panel(self):
        output = format_envelope(build_sql_envelope("SELECT 1"))
        assert "Envelope" in output
        assert "SELECT 1" in output

    def test_prompt_context(self):
        context = to_prompt_context(build_sql_envelope("SELECT 1", baseline_database="db"))
        assert json.loads(format_prompt_context(context, as_json=True)) == context
        assert "Prompt Context" in format_prompt_context(context)


class TestFormatActions:
    """Tests for quick action formatting."""

    def test_action_list(self):
        entries = get_quick_action_availability(ActionContext(sql="SELECT 1"))
        output = format_action_list(entries)
        assert "fix-sql-error" in output
        assert "rewrite-sql" in output

    def test_action_list_json(self):
        entries = get_quick_action_availability(ActionContext(sql="SELECT 1"))
        data = json.loads(format_action_list(entries, as_json=True))
        fix = data[0]
        assert fix["intent"] == "fix-sql-error"
        assert fix["available"] is False
        assert fix["reason"]
        assert data[1]["reason"] is None

    def test_action_result(self):
        result = ActionResult(title="Add alias", explanation="Declared o", fixed_sql="SELECT o.id FROM orders o", risk=Risk.MEDIUM)
        output = format_action_result(result)
        assert "Add alias" in output
        assert "medium" in output
        assert "SELECT o.id FROM orders o" in output

    def test_action_result_json(self):
        result = ActionResult(title="t", explanation="e", fixed_sql="SELECT 1", risk=Risk.HIGH)
        data = json.loads(format_action_result(result, as_json=True))
        assert data == {"title": "t", "explanation": "e", "fixedSql": "SELECT 1", "risk": "high"}


class TestFormatConfig:
    """Tests for config display."""

    def test_sections_and_scalars(self):
        output = format_config({"api": {"base_url": "http://x/api", "api_key": None}, "locale": "en"})
        assert "api" in output
        assert "base_url" in output
        assert "locale" in output

    def test_json(self):
        data = {"api": {"api_key": "***REDACTED***"}}
        assert json.loads(format_config(data, as_json=True)) == data
