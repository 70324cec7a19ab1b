"""
Chat: answer a user query and keep the session and user log in step.

Responsibility: sanitize and validate the query, pick the conversation context,
record both sides of the exchange, and call the resolver. Called by the API; no
HTTP here.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from app.agent.graph import AnswerResolver
from app.agent.stages import AnswerResult
from app.core.errors import EmptyQueryError
from app.core.session_store import SessionStore
from app.core.user_store import UserStore
from app.services.text_processing import clean_query

logger = logging.getLogger(__name__)


@dataclass
class ChatAnswer:
    result: AnswerResult
    context_used: bool
    session_id: str | None
    timestamp: str


class ChatService:
    def __init__(self, resolver: AnswerResolver, sessions: SessionStore, users: UserStore) -> None:
        self.resolver = resolver
        self.sessions = sessions
        self.users = users

    def search(self, query: str | None, user_id: str | None = None, session_id: str | None = None) -> ChatAnswer:
        """
        Answer query for user_id (optional) using the context of session_id, or of
        the user's current session when session_id is not given.

        Raises:
            EmptyQueryError: If the query is empty after trimming and sanitizing.
        """
        q = clean_query(query)
        if not q:
            raise EmptyQueryError()
        current = session_id or (self.sessions.current_session_id(user_id) if user_id else None)
        context = self.sessions.get_context(current)
        logger.info(
            "[chat:search] IN  query=%r user_id=%s session_id=%s context_turns=%d",
            q, user_id, current, len(context),
        )

        if user_id:
            self.sessions.add_message(user_id, q, "user")
            self.users.record_activity(user_id, is_question=True)

        result = self.resolver.resolve(q, context)
        timestamp = datetime.now(timezone.utc).isoformat()

        if user_id:
            self.sessions.add_message(
                user_id,
                result.text,
                "ai",
                source=result.source.value,
                confidence=result.confidence,
                model=result.model_name,
            )
            self.users.record_activity(user_id)
            self.users.append_conversation(user_id, {
                "session_id": self.sessions.current_session_id(user_id),
                "question": q,
                "answer": result.text,
                "source": result.source.value,
                "confidence": result.confidence,
                "timestamp": timestamp,
            })

        logger.info("[chat:search] OUT source=%s confidence=%d answer_len=%d",
                    result.source.value, result.confidence, len(result.text))
        return ChatAnswer(
            result=result,
            context_used=bool(context),
            session_id=self.sessions.current_session_id(user_id) if user_id else current,
            timestamp=timestamp,
        )

    def new_session(self, user_id: str, title: str | None = None) -> dict:
        session = self.sessions.create_session(user_id, title)
        self.users.record_session(user_id)
        return session.summary()
