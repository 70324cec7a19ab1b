"""Schemas for registration, login and admin endpoints."""

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    """Request body for POST /api/register. Field rules are checked by the account service."""

    name: str = ""
    username: str = ""
    email: str = ""
    password: str = ""


class RegisterResponse(BaseModel):
    success: bool = True
    message: str = "Registration successful! Please login."
    user_id: str


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class PublicUser(BaseModel):
    id: str | None = None
    username: str | None = None
    name: str | None = None
    email: str | None = None
    role: str | None = None


class LoginResponse(BaseModel):
    success: bool = True
    user: PublicUser
    session_token: str = Field(..., description="Random token identifying this login.")
