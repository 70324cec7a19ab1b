"""
Dependency providers for the API. Each returns one process-wide instance;
tests replace them through app.dependency_overrides.
"""

from functools import lru_cache

from app.agent.graph import AnswerResolver
from app.core.config import DATA_DIR, KNOWLEDGE_FILE, OLLAMA_MODEL
from app.core.session_store import SessionStore
from app.core.user_store import UserStore
from app.services.account_service import AccountService
from app.services.chat_service import ChatService
from app.services.knowledge_base import KnowledgeStore


@lru_cache
def get_knowledge_store() -> KnowledgeStore:
    return KnowledgeStore.from_file(KNOWLEDGE_FILE)


@lru_cache
def get_resolver() -> AnswerResolver:
    return AnswerResolver.default(get_knowledge_store(), model_name=OLLAMA_MODEL)


@lru_cache
def get_session_store() -> SessionStore:
    return SessionStore()


@lru_cache
def get_user_store() -> UserStore:
    return UserStore(DATA_DIR)


@lru_cache
def get_account_service() -> AccountService:
    return AccountService(get_user_store())


@lru_cache
def get_chat_service() -> ChatService:
    return ChatService(get_resolver(), get_session_store(), get_user_store())
