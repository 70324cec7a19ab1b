"""
Unit tests for the in-memory chat session store and conversation context.
"""

import pytest

from app.core.errors import SessionNotFoundError
from app.core.session_store import ConversationContext, SessionStore


@pytest.fixture
def sessions() -> SessionStore:
    return SessionStore()


class TestConversationContext:
    def test_keeps_most_recent_twenty_in_order(self) -> None:
        context = ConversationContext()
        for i in range(25):
            context.append("user" if i % 2 == 0 else "assistant", f"turn {i}")
        turns = context.turns()
        assert len(turns) == 20
        assert [t["content"] for t in turns] == [f"turn {i}" for i in range(5, 25)]
        assert turns[0]["role"] == "assistant"

    def test_under_cap_keeps_everything(self) -> None:
        context = ConversationContext(max_turns=5)
        context.append("user", "a")
        context.append("assistant", "b")
        assert context.turns() == [{"role": "user", "content": "a"}, {"role": "assistant", "content": "b"}]

    def test_turns_returns_copies(self) -> None:
        context = ConversationContext()
        context.append("user", "a")
        context.turns()[0]["content"] = "changed"
        assert context.turns()[0]["content"] == "a"


class TestSessionStore:
    def test_add_message_creates_session(self, sessions: SessionStore) -> None:
        sessions.add_message("alice", "Hello there", "user")
        current = sessions.current_session_id("alice")
        assert current is not None
        session = sessions.get_session(current)
        assert session["title"] == "Hello there"
        assert session["messages"][0]["sender"] == "user"

    def test_first_user_message_sets_truncated_title(self, sessions: SessionStore) -> None:
        long_text = "x" * 60
        sessions.add_message("alice", long_text, "user")
        sessions.add_message("alice", "second question", "user")
        session = sessions.get_session(sessions.current_session_id("alice"))
        assert session["title"] == "x" * 50 + "..."

    def test_messages_are_sanitized_but_context_is_raw(self, sessions: SessionStore) -> None:
        sessions.add_message("alice", "<b>hi</b>", "user")
        sid = sessions.current_session_id("alice")
        assert sessions.get_session(sid)["messages"][0]["message"] == "bhi/b"
        assert sessions.get_context(sid) == [{"role": "user", "content": "<b>hi</b>"}]

    def test_ai_messages_map_to_assistant_role_with_metadata(self, sessions: SessionStore) -> None:
        sessions.add_message("alice", "q", "user")
        sessions.add_message("alice", "a", "ai", source="fallback", confidence=30)
        sid = sessions.current_session_id("alice")
        assert sessions.get_context(sid)[-1] == {"role": "assistant", "content": "a"}
        message = sessions.get_session(sid)["messages"][-1]
        assert message["source"] == "fallback" and message["confidence"] == 30

    def test_context_capped_per_session(self, sessions: SessionStore) -> None:
        for i in range(25):
            sessions.add_message("alice", f"m{i}", "user")
        sid = sessions.current_session_id("alice")
        assert len(sessions.get_context(sid)) == 20
        assert len(sessions.get_session(sid)["messages"]) == 25

    def test_default_titles_count_up(self, sessions: SessionStore) -> None:
        first = sessions.create_session("bob")
        second = sessions.create_session("bob")
        assert (first.title, second.title) == ("Chat 1", "Chat 2")
        assert sessions.current_session_id("bob") == second.id

    def test_list_sessions_newest_first(self, sessions: SessionStore) -> None:
        first = sessions.create_session("bob", "First")
        sessions.create_session("bob", "Second")
        sessions.switch_session("bob", first.id)
        sessions.add_message("bob", "update first", "ai")
        listing = sessions.list_sessions("bob")
        assert listing["current_session_id"] == first.id
        assert [s["title"] for s in listing["sessions"]] == ["First", "Second"]
        assert listing["sessions"][0]["message_count"] == 1
        assert listing["sessions"][0]["last_message"] == "update first"

    def test_delete_discards_context_and_replaces_current(self, sessions: SessionStore) -> None:
        sessions.add_message("carol", "hello", "user")
        sid = sessions.current_session_id("carol")
        sessions.delete_session("carol", sid)
        assert sessions.get_context(sid) == []
        with pytest.raises(SessionNotFoundError):
            sessions.get_session(sid)
        new_sid = sessions.current_session_id("carol")
        assert new_sid is not None and new_sid != sid

    def test_unknown_session_errors(self, sessions: SessionStore) -> None:
        with pytest.raises(SessionNotFoundError):
            sessions.switch_session("dave", "nope")
        with pytest.raises(SessionNotFoundError):
            sessions.delete_session("dave", "nope")
        assert sessions.get_context("nope") == []
        assert sessions.get_context(None) == []

    def test_sessions_are_per_user(self, sessions: SessionStore) -> None:
        other = sessions.create_session("erin")
        with pytest.raises(SessionNotFoundError):
            sessions.switch_session("frank", other.id)
