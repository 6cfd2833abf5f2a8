# app/models/api/brain_request.py
"""
Brain API request models.
Used by routes for input validation.
"""

import uuid
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class CreateBrainItemRequest(BaseModel):
    """Request to capture a new note, link or insight."""

    user_id: uuid.UUID = Field(..., description="Owner of the item")
    title: str = Field(..., description="Item title")
    content: str = Field(..., description="Item body or uploaded text")
    type: Literal["note", "link", "insight"] = Field(default="note", description="Item type")

    @field_validator("title", "content")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title and content are required")
        return v


class BrainQueryRequest(BaseModel):
    """Conversational question against a user's brain."""

    user_id: uuid.UUID = Field(..., description="Whose brain to query")
    question: str = Field(..., max_length=2000, description="Free-text question")


class EnrichPreviewRequest(BaseModel):
    """Preview AI metadata for text without saving it."""

    title: str = Field(default="", description="Item title")
    content: str = Field(..., description="Item body")
