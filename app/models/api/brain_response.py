# app/models/api/brain_response.py
"""
Brain API response models.
Used by routes for output formatting.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.domain.brain_domain import BrainItem, ConversationSource, EnrichmentResult


class BrainItemResponse(BaseModel):
    """A saved item with its AI metadata."""

    id: str = Field(..., description="Item ID")
    title: str = Field(..., description="Item title")
    content: str = Field(..., description="Item body")
    type: str = Field(..., description="note, link or insight")
    tags: list[str] = Field(default_factory=list, description="Item tags")
    ai_summary: str | None = Field(None, description="AI or heuristic summary")
    ai_tags: list[str] = Field(default_factory=list, description="AI or heuristic tags")
    ai_category: str | None = Field(None, description="Category from the closed set")
    created_at: datetime | None = Field(None, description="When the item was saved")

    @classmethod
    def from_domain(cls, item: BrainItem) -> "BrainItemResponse":
        return cls(
            id=item.id,
            title=item.title,
            content=item.content,
            type=item.type,
            tags=item.tags,
            ai_summary=item.summary,
            ai_tags=item.ai_tags,
            ai_category=item.category,
            created_at=item.created_at,
        )


class BrainItemListResponse(BaseModel):
    """Latest items for a user."""

    count: int = Field(..., description="Number of items returned")
    items: list[BrainItemResponse] = Field(..., description="Items, newest first")
    timestamp: datetime = Field(..., description="Server time of the response")


class ConversationSourceResponse(BaseModel):
    """An item cited by an answer."""

    id: str
    title: str
    type: str
    ai_summary: str | None = None

    @classmethod
    def from_domain(cls, source: ConversationSource) -> "ConversationSourceResponse":
        return cls(id=source.id, title=source.title, type=source.type, ai_summary=source.summary)


class BrainQueryResponse(BaseModel):
    """Answer to a brain query."""

    answer: str = Field(..., description="Answer text with [n] citations")
    sources: list[ConversationSourceResponse] = Field(
        default_factory=list, description="Items the answer draws on"
    )
    timestamp: datetime = Field(..., description="Server time of the response")


class EnrichmentResponse(BaseModel):
    """Generated metadata for a piece of text."""

    summary: str
    tags: list[str]
    category: str

    @classmethod
    def from_domain(cls, result: EnrichmentResult) -> "EnrichmentResponse":
        return cls(**result.to_dict())
