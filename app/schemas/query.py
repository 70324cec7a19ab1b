"""Schemas for the search endpoint."""

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    """Request body for POST /api/search. Context is taken from the server-side session."""

    query: str | None = Field(None, description="User question. Missing, empty or whitespace-only queries are rejected with 400.")
    user_id: str | None = Field(None, description="User id; when set, both sides of the exchange are recorded.")
    session_id: str | None = Field(None, description="Session whose context is used; defaults to the user's current session.")


class SearchResponse(BaseModel):
    """Response for POST /api/search."""

    answer: str = Field(..., description="Answer text.")
    source: str = Field(..., description="model, knowledge_base, web_search or fallback.")
    confidence: int = Field(..., ge=0, le=100, description="Fixed confidence of the answering tier.")
    model: str = Field(..., description="Configured model name.")
    context_used: bool = Field(False, description="Whether earlier turns were sent with the query.")
    session_id: str | None = Field(None, description="Session the exchange was recorded in.")
    timestamp: str = Field(..., description="ISO-8601 UTC time of the answer.")

    model_config = {
        "protected_namespaces": (),
        "json_schema_extra": {
            "examples": [{
                "answer": "Our services include:\nAI Development: Custom AI solutions",
                "source": "knowledge_base",
                "confidence": 70,
                "model": "phi3:mini",
                "context_used": False,
                "session_id": None,
                "timestamp": "2026-01-01T00:00:00+00:00",
            }]
        },
    }


class VoiceActivityRequest(BaseModel):
    is_active: bool = False
    user_id: str | None = None
