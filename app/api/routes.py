"""
API route aggregator: register endpoints; no logic, only delegate to handlers and services.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from app.agent.llm import list_models
from app.agent.search import is_configured as search_is_configured
from app.api.deps import (
    get_account_service,
    get_chat_service,
    get_knowledge_store,
    get_session_store,
    get_user_store,
)
from app.api.handlers import handle_login, handle_register, handle_search
from app.core.config import OLLAMA_BASE_URL, OLLAMA_MODEL
from app.core.errors import ModelUnavailableError, SessionNotFoundError, UserDataError
from app.core.session_store import SessionStore
from app.core.user_store import UserStore
from app.schemas.knowledge import AddKnowledgeRequest
from app.schemas.query import SearchRequest, SearchResponse, VoiceActivityRequest
from app.schemas.session import NewSessionRequest, SwitchSessionRequest
from app.schemas.user import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse
from app.services.account_service import AccountService
from app.services.chat_service import ChatService
from app.services.knowledge_base import KnowledgeStore

logger = logging.getLogger(__name__)
router = APIRouter()

SAMPLE_KNOWLEDGE_QUERY = "What does Premade Innovation do?"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Premade assistant backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


@router.get("/api/test", tags=["system"], summary="Server status")
def server_status(users: UserStore = Depends(get_user_store)) -> dict:
    try:
        total_users = len(users.load_users())
    except UserDataError as e:
        logger.error("Server status: %s", e.message)
        total_users = None
    return {
        "message": "Assistant server is running",
        "model": OLLAMA_MODEL,
        "web_search": "enabled" if search_is_configured() else "disabled",
        "knowledge_base": "loaded",
        "total_users": total_users,
        "user_logs_enabled": True,
        "timestamp": _now(),
    }


@router.get("/api/test-knowledge", tags=["system"], summary="Run a sample knowledge-base lookup")
def test_knowledge(store: KnowledgeStore = Depends(get_knowledge_store)) -> dict:
    result = store.lookup(SAMPLE_KNOWLEDGE_QUERY)
    return {"knowledge_base": "loaded", "test_query": SAMPLE_KNOWLEDGE_QUERY, "result": result}


@router.get("/api/model/status", tags=["system"], summary="Check the local model service")
def model_status() -> dict:
    """List models on the model service and whether the configured one is installed."""
    try:
        models = list_models()
    except ModelUnavailableError as e:
        logger.warning("Model status check failed: %s", e)
        return {
            "status": "error",
            "model_available": False,
            "error": e.message,
            "base_url": OLLAMA_BASE_URL,
            "timestamp": _now(),
        }
    base = OLLAMA_MODEL.split(":")[0]
    return {
        "status": "healthy",
        "model_available": any(base in name for name in models),
        "models": models,
        "base_url": OLLAMA_BASE_URL,
        "timestamp": _now(),
    }


# --- Accounts ---

@router.post("/api/register", response_model=RegisterResponse, tags=["accounts"], summary="Register a user")
def register(body: RegisterRequest, accounts: AccountService = Depends(get_account_service)) -> RegisterResponse:
    return handle_register(body, accounts)


@router.post("/api/login", response_model=LoginResponse, tags=["accounts"], summary="Log in")
def login(body: LoginRequest, accounts: AccountService = Depends(get_account_service)) -> LoginResponse:
    return handle_login(body, accounts)


# --- Query ---

@router.post(
    "/api/search",
    response_model=SearchResponse,
    tags=["query"],
    summary="Answer a question",
    description="Model → knowledge base → web search → fallback. 400 on empty query.",
)
def search(body: SearchRequest, chat: ChatService = Depends(get_chat_service)) -> SearchResponse:
    logger.info("[api:search] IN  query=%r user_id=%s session_id=%s", body.query, body.user_id, body.session_id)
    return handle_search(body, chat)


@router.post("/api/voice/activity", tags=["query"], summary="Acknowledge a voice activity event")
def voice_activity(body: VoiceActivityRequest) -> dict:
    logger.info("Voice activity for %s: %s", body.user_id, "started" if body.is_active else "stopped")
    return {"success": True, "timestamp": _now()}


# --- Chat sessions ---

@router.get("/api/chat/sessions/{user_id}", tags=["sessions"], summary="List a user's chat sessions")
def list_sessions(user_id: str, sessions: SessionStore = Depends(get_session_store)) -> dict:
    return sessions.list_sessions(user_id)


@router.get("/api/chat/session/{session_id}", tags=["sessions"], summary="Get a chat session")
def get_session(session_id: str, sessions: SessionStore = Depends(get_session_store)) -> dict:
    try:
        return sessions.get_session(session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail="Session not found") from e


@router.post("/api/chat/new-session", tags=["sessions"], summary="Start a new chat session")
def new_session(body: NewSessionRequest, chat: ChatService = Depends(get_chat_service)) -> dict:
    if not body.user_id:
        raise HTTPException(status_code=400, detail="User ID is required")
    session = chat.new_session(body.user_id, body.title)
    return {"session_id": session["id"], "session": session}


@router.post("/api/chat/switch-session", tags=["sessions"], summary="Make a session current")
def switch_session(body: SwitchSessionRequest, sessions: SessionStore = Depends(get_session_store)) -> dict:
    if not body.user_id or not body.session_id:
        raise HTTPException(status_code=400, detail="User ID and Session ID are required")
    try:
        current = sessions.switch_session(body.user_id, body.session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail="Session not found") from e
    return {"success": True, "current_session_id": current}


@router.delete("/api/chat/session/{session_id}", tags=["sessions"], summary="Delete a chat session")
def delete_session(
    session_id: str,
    user_id: str = "",
    sessions: SessionStore = Depends(get_session_store),
) -> dict:
    if not user_id:
        raise HTTPException(status_code=400, detail="User ID is required")
    try:
        sessions.delete_session(user_id, session_id)
    except SessionNotFoundError as e:
        raise HTTPException(status_code=404, detail="Session not found") from e
    return {"success": True}


# --- Admin ---

@router.get("/api/admin/users", tags=["admin"], summary="Users with statistics")
def admin_users(accounts: AccountService = Depends(get_account_service)) -> dict:
    try:
        return {"users": accounts.list_users_with_stats()}
    except (OSError, UserDataError) as e:
        logger.exception("Failed to load users")
        raise HTTPException(status_code=500, detail="Failed to load users") from e


@router.get("/api/admin/user-insights/{username}", tags=["admin"], summary="Insights for one user")
def admin_user_insights(username: str, accounts: AccountService = Depends(get_account_service)) -> dict:
    insights = accounts.user_insights(username)
    if insights is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"user_insights": insights}


# --- Knowledge ---

@router.get("/api/knowledge", tags=["knowledge"], summary="Current knowledge document")
def get_knowledge(store: KnowledgeStore = Depends(get_knowledge_store)) -> dict:
    return store.snapshot()


@router.post("/api/knowledge", tags=["knowledge"], summary="Add or replace a knowledge entry")
def add_knowledge(body: AddKnowledgeRequest, store: KnowledgeStore = Depends(get_knowledge_store)) -> dict:
    try:
        store.add(body.category, body.key, body.value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except OSError as e:
        logger.exception("Failed to save knowledge")
        raise HTTPException(status_code=500, detail=f"Failed to save knowledge: {e!s}") from e
    return {"success": True, "category": body.category, "key": body.key}
