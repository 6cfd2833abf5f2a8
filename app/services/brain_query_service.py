# app/services/brain_query_service.py
"""
Brain Query Service
Answers free-text questions over a user's saved items and resolves the
bracketed citations in the answer back to those items.
"""

import re
from collections.abc import Sequence

from app.config import settings
from app.infrastructure.observability.logging import get_logger
from app.models.domain.brain_domain import BrainItem, ConversationSource, QueryAnswer
from app.services.ai.model_client import ModelClient, model_client

logger = get_logger(__name__)

_CITATION_RE = re.compile(r"\[(\d+)\]")

QUERY_SYSTEM_MESSAGE = "You are a helpful assistant for a personal knowledge base."


def _single_line(text: str) -> str:
    return " ".join(text.split())


def build_context(items: Sequence[BrainItem], max_items: int, excerpt_chars: int) -> str:
    """One numbered line per item, most recent first, as the model sees them."""
    lines = []
    for index, item in enumerate(items[:max_items]):
        title = _single_line(item.title)
        excerpt = _single_line(item.excerpt_source())[:excerpt_chars]
        lines.append(f'[{index + 1}] "{title}" ({item.type}): {excerpt}')
    return "\n".join(lines)


def resolve_citations(answer_text: str, item_count: int) -> list[int]:
    """
    Map "[n]" references in an answer to 0-based item indices.

    Duplicates collapse to their first occurrence and indices outside
    [0, item_count) are dropped.
    """
    indices: list[int] = []
    seen: set[int] = set()
    for match in _CITATION_RE.finditer(answer_text):
        index = int(match.group(1)) - 1
        if index in seen:
            continue
        seen.add(index)
        if 0 <= index < item_count:
            indices.append(index)
    return indices


class BrainQueryService:
    """
    Conversational query engine.

    There is no offline fallback: AIConfigError and AIQuotaError reach the
    caller as-is, and any other failure surfaces as an AIServiceError.
    """

    def __init__(self, client: ModelClient | None = None):
        self.client = client or model_client

    def _build_prompt(self, question: str, context: str) -> str:
        return f"""Answer the question using ONLY the notes below.

NOTES:
{context}

QUESTION: "{question}"

Rules:
- Be concise (2-4 sentences).
- Cite the notes that support your answer by their index, like [1] or [2].
- If no relevant notes exist, say so."""

    async def answer_question(self, question: str, items: Sequence[BrainItem]) -> QueryAnswer:
        """
        Ask the model a question about the supplied items.

        Args:
            question: Free-text question
            items: User's items, newest first; must not be empty

        Returns:
            QueryAnswer: Answer text and cited 0-based item indices

        Raises:
            ValueError: If items is empty
            AIConfigError: Model not configured or unavailable
            AIQuotaError: Admission rejected or provider rate limit
            AIUpstreamError: Any other upstream failure
        """
        if not items:
            raise ValueError("answer_question requires at least one item")

        shown = min(len(items), settings.QUERY_CONTEXT_MAX_ITEMS)
        context = build_context(
            items,
            max_items=shown,
            excerpt_chars=settings.QUERY_EXCERPT_CHARS,
        )

        logger.info(
            "Answering brain query",
            item_count=len(items),
            context_items=shown,
            question_length=len(question),
        )

        answer_text = await self.client.generate(
            self._build_prompt(question, context),
            system=QUERY_SYSTEM_MESSAGE,
            operation="answer_question",
        )

        # Only items the model was shown can be cited
        indices = resolve_citations(answer_text, shown)
        logger.debug("Citations resolved", cited=indices)

        return QueryAnswer(answer_text=answer_text, source_indices=tuple(indices))

    def resolve_sources(
        self, answer: QueryAnswer, items: Sequence[BrainItem]
    ) -> list[ConversationSource]:
        """Project the cited items into ConversationSource records."""
        return [ConversationSource.from_item(items[index]) for index in answer.source_indices]


# Singleton instance for application use
brain_query_service = BrainQueryService()
