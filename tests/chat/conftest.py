"""Fixtures for chat tests: an in-memory session store."""

import asyncio

import pytest

from src.chat.models import ChatMessage, ChatMode, ChatSession, SessionDetail
from src.chat.store_client import SessionStoreError


class FakeSessionStore:
    """In-memory SessionStore with injectable failures and gates.

    ``fail[op]`` makes calls of op raise that error. ``gates[op]`` or
    ``gates[(op, arg)]`` holds a call until the event is set, so tests can
    interleave completions. list_sessions answers with the list as it was
    when the call started.
    """

    def __init__(self):
        self.sessions: list[ChatSession] = []
        self.messages: dict[str, list[ChatMessage]] = {}
        self.copilot: dict[str, ChatSession] = {}
        self.fail: dict[str, SessionStoreError] = {}
        self.gates: dict[object, asyncio.Event] = {}
        self.calls: list[tuple] = []
        self._counter = 0

    def add(self, session_id: str, title: str | None = None, messages=()) -> ChatSession:
        session = ChatSession(id=session_id, type=ChatMode.GLOBAL, title=title)
        self.sessions.append(session)
        self.messages[session_id] = [
            ChatMessage.user_text(f"{session_id}-m{i}", text) for i, text in enumerate(messages)
        ]
        return session

    def add_copilot(self, tab_id: str, session_id: str, messages=()) -> ChatSession:
        session = ChatSession(id=session_id, type=ChatMode.COPILOT, tab_id=tab_id)
        self.copilot[tab_id] = session
        self.messages[session_id] = [
            ChatMessage.user_text(f"{session_id}-m{i}", text) for i, text in enumerate(messages)
        ]
        return session

    async def _enter(self, op: str, *args):
        self.calls.append((op, *args))
        gate = self.gates.get((op, *args)) or self.gates.get(op)
        if gate is not None:
            await gate.wait()
        if op in self.fail:
            raise self.fail[op]

    def count(self, op: str) -> int:
        return sum(1 for call in self.calls if call[0] == op)

    async def list_sessions(self, mode):
        snapshot = list(self.sessions)
        await self._enter("list", mode)
        return snapshot

    async def get_session_detail(self, session_id):
        await self._enter("detail", session_id)
        session = next((s for s in self.sessions if s.id == session_id), None)
        if session is None:
            session = next((s for s in self.copilot.values() if s.id == session_id), None)
        return SessionDetail(session=session, messages=list(self.messages.get(session_id, [])))

    async def create_session(self):
        await self._enter("create")
        self._counter += 1
        session = ChatSession(id=f"new-{self._counter}", type=ChatMode.GLOBAL)
        self.sessions.insert(0, session)
        self.messages[session.id] = []
        return session

    async def rename_session(self, session_id, title):
        await self._enter("rename", session_id, title)
        self.sessions = [s.with_title(title) if s.id == session_id else s for s in self.sessions]

    async def delete_session(self, session_id):
        await self._enter("delete", session_id)
        self.sessions = [s for s in self.sessions if s.id != session_id]

    async def get_or_create_copilot_session(self, envelope):
        await self._enter("copilot_get_or_create", envelope.tab_id)
        if envelope.tab_id not in self.copilot:
            self.add_copilot(envelope.tab_id, f"cop-{envelope.tab_id}")
        return self.copilot[envelope.tab_id]

    async def get_copilot_session(self, tab_id):
        await self._enter("copilot_get", tab_id)
        return self.copilot.get(tab_id)


@pytest.fixture
def store() -> FakeSessionStore:
    return FakeSessionStore()
