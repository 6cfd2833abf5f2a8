"""
Brain Domain Models
Domain models for saved items, AI enrichment results and brain queries.
Used by services for internal processing and business rules.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

ItemType = Literal["note", "link", "insight"]

ITEM_TYPES: tuple[str, ...] = ("note", "link", "insight")

# Closed category set: category name -> representative tags.
# Drives both the enrichment prompt and the dashboard tag grouping.
CATEGORY_TAGS: dict[str, tuple[str, ...]] = {
    "Technology": (
        "web-development",
        "machine-learning",
        "artificial-intelligence",
        "programming",
        "api-design",
        "database",
        "devops",
        "mobile-dev",
    ),
    "Business": ("startup", "marketing", "finance", "strategy", "sales"),
    "Personal": ("health-wellness", "productivity", "habits", "self-improvement", "journaling"),
    "Creative": ("design", "writing", "art", "photography", "music"),
    "Learning": ("courses", "tutorials", "books", "research", "academic"),
    "Work": ("project-management", "meetings", "collaboration", "planning", "deadlines"),
}

CATEGORY_NAMES: tuple[str, ...] = tuple(CATEGORY_TAGS)

CATEGORY_DESCRIPTIONS: dict[str, str] = {
    "Technology": "programming, software, AI/ML, tech tools, APIs, frameworks",
    "Business": "entrepreneurship, marketing, strategy, finance, growth",
    "Personal": "health, habits, self-improvement, journaling, lifestyle",
    "Creative": "design, writing, art, media, photography",
    "Learning": "courses, textbooks, academic material, tutorials",
    "Work": "project management, meetings, tasks, deadlines, collaboration",
}


def match_category(raw: str | None) -> str | None:
    """Return the canonical category for a case-insensitive exact match, else None."""
    if not isinstance(raw, str):
        return None
    wanted = raw.strip().lower()
    for name in CATEGORY_NAMES:
        if name.lower() == wanted:
            return name
    return None


@dataclass(frozen=True, slots=True)
class EnrichmentResult:
    """Summary, topic tags and category derived for a single item."""

    summary: str
    tags: tuple[str, ...]
    category: str

    def to_dict(self) -> dict[str, Any]:
        return {"summary": self.summary, "tags": list(self.tags), "category": self.category}


@dataclass(slots=True)
class BrainItem:
    """Represents a brain_items row."""

    id: str
    title: str
    content: str
    type: str = "note"
    user_id: str | None = None
    tags: list[str] = field(default_factory=list)
    summary: str | None = None
    ai_tags: list[str] = field(default_factory=list)
    category: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "BrainItem":
        return cls(
            id=str(row["id"]),
            user_id=str(row["user_id"]) if row.get("user_id") is not None else None,
            title=row.get("title") or "",
            content=row.get("content") or "",
            type=row.get("type") or "note",
            tags=list(row.get("tags") or []),
            summary=row.get("ai_summary"),
            ai_tags=list(row.get("ai_tags") or []),
            category=row.get("ai_category"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def excerpt_source(self) -> str:
        """Text used to describe the item in a query context: summary first."""
        return self.summary or self.content or ""


@dataclass(frozen=True, slots=True)
class ConversationSource:
    """Trimmed projection of a BrainItem cited by an answer."""

    id: str
    title: str
    type: str
    summary: str | None

    @classmethod
    def from_item(cls, item: BrainItem) -> "ConversationSource":
        return cls(id=item.id, title=item.title, type=item.type, summary=item.summary)


@dataclass(frozen=True, slots=True)
class QueryAnswer:
    """Raw model answer plus the 0-based indices of the items it cites."""

    answer_text: str
    source_indices: tuple[int, ...]


@dataclass(slots=True)
class BrainAnswer:
    """Answer as presented to the user, with sources attached."""

    answer: str
    sources: list[ConversationSource] = field(default_factory=list)
