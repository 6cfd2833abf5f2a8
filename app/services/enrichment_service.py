# app/services/enrichment_service.py
"""
Enrichment Service for saved brain items.
Produces summary, tags and category with one model call per item, and
falls back to offline heuristics whenever the model cannot be used.
"""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from app.config import settings
from app.infrastructure.observability.logging import get_logger
from app.models.domain.brain_domain import (
    CATEGORY_DESCRIPTIONS,
    CATEGORY_NAMES,
    EnrichmentResult,
    match_category,
)
from app.services.ai.errors import AIConfigError, AIQuotaError, AIServiceError
from app.services.ai.heuristics import infer_category, infer_summary, infer_tags
from app.services.ai.model_client import ModelClient, model_client
from app.services.ai.response_extractor import extract_structured

logger = get_logger(__name__)

MIN_SUMMARY_LENGTH = 10
MAX_TAGS = 5
TRUNCATION_MARKER = "\n[...remaining content truncated...]"

GENERIC_TAGS = frozenset(
    {
        "idea",
        "content",
        "note",
        "learning",
        "information",
        "untagged",
        "general",
        "topic",
        "summary",
    }
)

_WHITESPACE_RE = re.compile(r"\s+")


class MetadataPayload(BaseModel):
    """Model output as extracted; loosely typed until validated below."""

    model_config = ConfigDict(extra="ignore")

    summary: str = ""
    tags: list[str] = []
    category: str | None = None

    @field_validator("summary", mode="before")
    @classmethod
    def _coerce_summary(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [tag for tag in value if isinstance(tag, str) and tag.strip()]

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None


def normalize_tags(raw_tags: list[str]) -> list[str]:
    """Lower-case, hyphenate whitespace, drop generic tags, cap at five."""
    tags: list[str] = []
    for raw in raw_tags:
        tag = _WHITESPACE_RE.sub("-", raw.strip().lower())
        if tag and tag not in GENERIC_TAGS:
            tags.append(tag)
    return tags[:MAX_TAGS]


def offline_metadata(title: str, content: str) -> EnrichmentResult:
    """Full heuristic result, used whenever the model path fails."""
    return EnrichmentResult(
        summary=infer_summary(title, content),
        tags=tuple(infer_tags(title, content)),
        category=infer_category(title, content),
    )


class EnrichmentService:
    """
    Generates AI metadata for brain items.

    generate_metadata() is total: any failure is logged and answered with
    the offline heuristics, so saving an item never depends on the model.
    """

    def __init__(self, client: ModelClient | None = None):
        self.client = client or model_client

    def _truncate(self, content: str) -> str:
        budget = settings.AI_CONTENT_CHAR_BUDGET
        if len(content) > budget:
            return content[:budget] + TRUNCATION_MARKER
        return content

    def _build_prompt(self, title: str, content: str) -> str:
        """Build the single prompt asking for summary, tags and category."""
        categories = ", ".join(CATEGORY_NAMES)
        category_lines = "\n".join(
            f'- "{name}" = {CATEGORY_DESCRIPTIONS[name]}' for name in CATEGORY_NAMES
        )
        banned = ", ".join(f'"{tag}"' for tag in sorted(GENERIC_TAGS))

        return f"""Analyze the following content and return a JSON object with EXACTLY these 3 fields:

{{
  "summary": "A clear 2-3 sentence summary",
  "tags": ["tag1", "tag2", "tag3"],
  "category": "CategoryName"
}}

SUMMARY RULES:
1. Use the ENTIRE provided text, not just the first few lines.
2. Identify the core argument or central theme and the key takeaway.
3. Write 2-3 cohesive sentences in your own words.
4. Do NOT copy the title or repeat the opening lines verbatim.
5. If the content is code or data (JSON, CSV), summarize its structure and purpose.

TAG RULES:
- 3-5 specific lowercase hyphenated topic tags (e.g. "machine-learning", "react-hooks", "api-design")
- Tags describe the SPECIFIC topics discussed, not generic labels
- NEVER use these generic tags: {banned}

CATEGORY - pick exactly ONE from: {categories}
{category_lines}

---
Title: "{title}"
Content: "{self._truncate(content)}"
---

Return ONLY valid JSON. No markdown, no explanation."""

    async def generate_metadata(self, title: str, content: str) -> EnrichmentResult:
        """
        Generate summary, tags and category for an item.

        Args:
            title: Item title
            content: Item body (notes, link text, uploaded file text)

        Returns:
            EnrichmentResult: Always fully populated
        """
        title = title or ""
        content = content or ""

        try:
            result = await self.client.try_generate(
                self._build_prompt(title, content),
                json_mode=True,
                operation="generate_metadata",
            )

            if not result.ok:
                return self._fallback(title, content, result.error)

            payload = extract_structured(result.text, MetadataPayload)
            return self._repair(title, content, payload)

        except AIServiceError as e:
            return self._fallback(title, content, e)
        except Exception as e:
            logger.error(
                "Unexpected error during metadata generation",
                error=str(e),
                error_type=type(e).__name__,
            )
            return offline_metadata(title, content)

    def _repair(self, title: str, content: str, payload: MetadataPayload) -> EnrichmentResult:
        """Validate each field of the model output, replacing weak ones heuristically."""
        repaired: list[str] = []

        summary = payload.summary
        if len(summary) < MIN_SUMMARY_LENGTH:
            summary = infer_summary(title, content)
            repaired.append("summary")

        tags = normalize_tags(payload.tags)
        if not tags:
            tags = infer_tags(title, content)
            repaired.append("tags")

        category = match_category(payload.category)
        if category is None:
            category = infer_category(title, content)
            repaired.append("category")

        if repaired:
            logger.info("Model metadata repaired with heuristics", fields=repaired)

        return EnrichmentResult(summary=summary, tags=tuple(tags), category=category)

    def _fallback(self, title: str, content: str, error: AIServiceError) -> EnrichmentResult:
        if isinstance(error, (AIConfigError, AIQuotaError)):
            logger.warning(
                "Metadata generation skipped, using offline heuristics",
                error=str(error),
                error_type=type(error).__name__,
            )
        else:
            logger.error(
                "Metadata generation failed, using offline heuristics",
                error=str(error),
                error_type=type(error).__name__,
            )
        return offline_metadata(title, content)


# Singleton instance for application use
enrichment_service = EnrichmentService()


async def generate_metadata(title: str, content: str) -> EnrichmentResult:
    """Generate AI metadata for an item; never raises."""
    return await enrichment_service.generate_metadata(title, content)
