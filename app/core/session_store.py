"""
In-memory chat session store. Keyed by user id; each user has a current session
and any number of past sessions. Every session owns a ConversationContext that
feeds the resolver prompt.
"""

import logging
import secrets
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from app.core.config import LAST_MESSAGE_PREVIEW, MAX_CONTEXT_TURNS, SESSION_TITLE_MAX
from app.core.errors import SessionNotFoundError
from app.services.text_processing import sanitize_input, truncate

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


class ConversationContext:
    """Most recent (role, content) turns of one session, oldest first, capped at max_turns."""

    def __init__(self, max_turns: int = MAX_CONTEXT_TURNS) -> None:
        self.max_turns = max_turns
        self._turns: list[dict[str, str]] = []

    def append(self, role: str, content: str) -> None:
        self._turns.append({"role": role, "content": content or ""})
        if len(self._turns) > self.max_turns:
            del self._turns[: len(self._turns) - self.max_turns]

    def turns(self) -> list[dict[str, str]]:
        return [dict(t) for t in self._turns]

    def __len__(self) -> int:
        return len(self._turns)


@dataclass
class ChatSession:
    id: str
    title: str
    messages: list[dict[str, Any]] = field(default_factory=list)
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)
    context: ConversationContext = field(default_factory=ConversationContext)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "messages": [dict(m) for m in self.messages],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def summary(self) -> dict[str, Any]:
        last = self.messages[-1]["message"] if self.messages else ""
        return {
            "id": self.id,
            "title": self.title,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "message_count": len(self.messages),
            "last_message": last[:LAST_MESSAGE_PREVIEW],
        }


@dataclass
class UserChats:
    current_session_id: str | None = None
    sessions: dict[str, ChatSession] = field(default_factory=dict)


class SessionStore:
    """Thread-safe registry of chat sessions for all users."""

    def __init__(self, max_context_turns: int = MAX_CONTEXT_TURNS) -> None:
        self.max_context_turns = max_context_turns
        self._users: dict[str, UserChats] = {}
        self._lock = threading.RLock()

    def _user(self, user_id: str) -> UserChats:
        if user_id not in self._users:
            self._users[user_id] = UserChats()
        return self._users[user_id]

    def _find(self, session_id: str) -> ChatSession | None:
        for chats in self._users.values():
            if session_id in chats.sessions:
                return chats.sessions[session_id]
        return None

    def current_session_id(self, user_id: str) -> str | None:
        with self._lock:
            return self._user(user_id).current_session_id

    def create_session(self, user_id: str, title: str | None = None) -> ChatSession:
        """Create a session for the user and make it current. Default title is "Chat N"."""
        with self._lock:
            chats = self._user(user_id)
            if not title:
                title = f"Chat {len(chats.sessions) + 1}"
            session = ChatSession(
                id=_new_id("session"),
                title=title,
                context=ConversationContext(self.max_context_turns),
            )
            chats.sessions[session.id] = session
            chats.current_session_id = session.id
        logger.info("[session_store:create_session] user_id=%s session_id=%s", user_id[:16], session.id)
        return session

    def add_message(self, user_id: str, text: str, sender: str, **metadata: Any) -> dict[str, Any]:
        """
        Append a message to the user's current session (created on demand).

        sender is "user" or "ai"; the context records it as user/assistant.
        The first user message becomes the session title.
        """
        with self._lock:
            chats = self._user(user_id)
            session = chats.sessions.get(chats.current_session_id or "")
            if session is None:
                session = self.create_session(user_id)
            message = {
                "id": _new_id("msg"),
                "sender": sender,
                "message": sanitize_input(text or ""),
                "timestamp": _now(),
                **metadata,
            }
            session.messages.append(message)
            session.updated_at = message["timestamp"]
            if sender == "user" and sum(1 for m in session.messages if m["sender"] == "user") == 1:
                session.title = truncate(text or "", SESSION_TITLE_MAX)
            session.context.append("user" if sender == "user" else "assistant", text or "")
        logger.info(
            "[session_store:add_message] user_id=%s session_id=%s sender=%s content_len=%d",
            user_id[:16], session.id, sender, len(text or ""),
        )
        return message

    def get_context(self, session_id: str | None) -> list[dict[str, str]]:
        """Return a copy of the session's context turns; empty for unknown ids."""
        if not session_id:
            return []
        with self._lock:
            session = self._find(session_id)
            return session.context.turns() if session else []

    def list_sessions(self, user_id: str) -> dict[str, Any]:
        """Session summaries, most recently updated first, plus the current session id."""
        with self._lock:
            chats = self._user(user_id)
            sessions = [s.summary() for s in chats.sessions.values()]
            current = chats.current_session_id
        sessions.sort(key=lambda s: s["updated_at"], reverse=True)
        return {"sessions": sessions, "current_session_id": current}

    def get_session(self, session_id: str) -> dict[str, Any]:
        with self._lock:
            session = self._find(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            return session.to_dict()

    def switch_session(self, user_id: str, session_id: str) -> str:
        with self._lock:
            chats = self._user(user_id)
            if session_id not in chats.sessions:
                raise SessionNotFoundError(session_id)
            chats.current_session_id = session_id
        return session_id

    def delete_session(self, user_id: str, session_id: str) -> None:
        """Delete a session and its context. A fresh session replaces a deleted current one."""
        with self._lock:
            chats = self._user(user_id)
            if session_id not in chats.sessions:
                raise SessionNotFoundError(session_id)
            del chats.sessions[session_id]
            if chats.current_session_id == session_id:
                chats.current_session_id = None
                self.create_session(user_id)
        logger.info("[session_store:delete_session] user_id=%s session_id=%s", user_id[:16], session_id)
