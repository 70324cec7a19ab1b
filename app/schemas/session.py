"""Schemas for chat session endpoints."""

from pydantic import BaseModel


class NewSessionRequest(BaseModel):
    user_id: str = ""
    title: str | None = None


class SwitchSessionRequest(BaseModel):
    user_id: str = ""
    session_id: str = ""
