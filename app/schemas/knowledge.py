"""Schemas for the knowledge endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class AddKnowledgeRequest(BaseModel):
    """Request body for POST /api/knowledge. Sets knowledge[category][key] = value."""

    category: str = Field(..., min_length=1, description="One of company, services, careers, contact, technologies, founders.")
    key: str = Field(..., min_length=1)
    value: Any = Field(..., description="String, list or object stored under the key.")
