"""
API handlers: call services and map results/errors to HTTP.

Responsibility: Bridge HTTP types and services. Marshalling and exception-to-HTTP mapping.
Lives in the API layer so services stay free of FastAPI/HTTP types.
"""

import logging

from fastapi import HTTPException

from app.core.errors import EmptyQueryError, InvalidCredentialsError, RegistrationError, UserDataError
from app.schemas.query import SearchRequest, SearchResponse
from app.schemas.user import LoginRequest, LoginResponse, PublicUser, RegisterRequest, RegisterResponse
from app.services.account_service import AccountService
from app.services.chat_service import ChatService

logger = logging.getLogger(__name__)


def handle_search(body: SearchRequest, chat: ChatService) -> SearchResponse:
    """Run the chat service; empty query → 400, anything unexpected → 500."""
    try:
        answer = chat.search(body.query, user_id=body.user_id, session_id=body.session_id)
    except EmptyQueryError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except Exception as e:
        logger.exception("Search failed")
        raise HTTPException(status_code=500, detail=f"Internal server error: {e!s}") from e
    result = answer.result
    return SearchResponse(
        answer=result.text,
        source=result.source.value,
        confidence=result.confidence,
        model=result.model_name,
        context_used=answer.context_used,
        session_id=answer.session_id,
        timestamp=answer.timestamp,
    )


def handle_register(body: RegisterRequest, accounts: AccountService) -> RegisterResponse:
    try:
        user = accounts.register(body.name, body.username, body.email, body.password)
    except RegistrationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except (OSError, UserDataError) as e:
        logger.exception("Registration failed")
        raise HTTPException(status_code=500, detail="Internal server error during registration") from e
    return RegisterResponse(user_id=user["id"])


def handle_login(body: LoginRequest, accounts: AccountService) -> LoginResponse:
    if not body.username or not body.password:
        raise HTTPException(status_code=400, detail="Username and password are required")
    try:
        user, token = accounts.login(body.username, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    except UserDataError as e:
        logger.exception("Login failed")
        raise HTTPException(status_code=500, detail="Internal server error during login") from e
    return LoginResponse(user=PublicUser(**user), session_token=token)
