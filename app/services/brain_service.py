# app/services/brain_service.py
"""
Brain Service
Request-facing operations on a user's brain: capture items with automatic
enrichment, list and delete them, and ask questions across them.
"""

from app.config import settings
from app.db.helpers import DatabaseError
from app.infrastructure.observability.logging import get_logger
from app.models.domain.brain_domain import ITEM_TYPES, BrainAnswer, BrainItem, ConversationSource
from app.repositories.brain_item_repository import BrainItemRepository, brain_item_repository
from app.services.ai.errors import AIConfigError, AIQuotaError
from app.services.brain_query_service import BrainQueryService, brain_query_service
from app.services.enrichment_service import EnrichmentService, enrichment_service

logger = get_logger(__name__)

EMPTY_BRAIN_MESSAGE = "Your brain is empty! Start by capturing some notes, links, or insights."
NOT_CONFIGURED_MESSAGE = "AI is not configured. Add your OpenAI API key to enable brain queries."
QUOTA_MESSAGE = "The AI is getting a lot of requests right now. Please try again {when}."
TROUBLE_MESSAGE = "I had trouble processing that. Please try again."

# Sources shown when an answer cites nothing valid
DEFAULT_SOURCE_COUNT = 2


class BrainServiceError(Exception):
    """Raised for invalid input or persistence failures in brain operations."""

    def __init__(self, message: str, operation: str = "unknown", recoverable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.recoverable = recoverable


class BrainValidationError(BrainServiceError):
    """Raised when an item is missing required fields or has an unknown type."""


def quota_message(retry_after_seconds: int | None) -> str:
    when = f"in about {retry_after_seconds}s" if retry_after_seconds else "shortly"
    return QUOTA_MESSAGE.format(when=when)


class BrainService:
    """Coordinates the repository, enrichment pipeline and query engine."""

    def __init__(
        self,
        repository: BrainItemRepository | None = None,
        enrichment: EnrichmentService | None = None,
        query_engine: BrainQueryService | None = None,
    ):
        self.repository = repository or brain_item_repository
        self.enrichment = enrichment or enrichment_service
        self.query_engine = query_engine or brain_query_service

    async def create_item(
        self, user_id: str, title: str, content: str, item_type: str = "note"
    ) -> BrainItem:
        """
        Save a new item with AI-generated summary, tags and category.

        Raises:
            BrainServiceError: Missing title/content, bad type, or insert failure
        """
        title = (title or "").strip()
        if not title or not (content or "").strip():
            raise BrainValidationError("Title and content are required", operation="create_item")

        if item_type not in ITEM_TYPES:
            raise BrainValidationError(f"Unknown item type: {item_type}", operation="create_item")

        # Enrichment never raises; the save does not depend on the model
        enrichment = await self.enrichment.generate_metadata(title, content)

        try:
            item = await self.repository.insert_item(user_id, title, content, item_type, enrichment)
        except DatabaseError as e:
            logger.error("Error creating brain item", user_id=user_id, error=str(e))
            raise BrainServiceError(
                f"Failed to save item: {e}", operation="create_item", recoverable=e.recoverable
            ) from e

        if item is None:
            raise BrainServiceError("Insert returned no row", operation="create_item")

        logger.info(
            "Brain item created",
            user_id=user_id,
            item_id=item.id,
            item_type=item_type,
            category=enrichment.category,
            tag_count=len(enrichment.tags),
        )
        return item

    async def list_items(
        self,
        user_id: str,
        *,
        search: str | None = None,
        item_type: str | None = None,
        tag: str | None = None,
        limit: int = 50,
    ) -> list[BrainItem]:
        try:
            return await self.repository.list_items(
                user_id, limit=limit, search=search, item_type=item_type, tag=tag
            )
        except DatabaseError as e:
            logger.error("Error fetching brain items", user_id=user_id, error=str(e))
            raise BrainServiceError(
                f"Failed to fetch items: {e}", operation="list_items", recoverable=e.recoverable
            ) from e

    async def delete_item(self, user_id: str, item_id: str) -> bool:
        try:
            deleted = await self.repository.delete_item(user_id, item_id)
        except DatabaseError as e:
            logger.error("Error deleting brain item", user_id=user_id, item_id=item_id, error=str(e))
            raise BrainServiceError(
                f"Failed to delete item: {e}", operation="delete_item", recoverable=e.recoverable
            ) from e

        if deleted:
            logger.info("Brain item deleted", user_id=user_id, item_id=item_id)
        return deleted

    async def ask(self, user_id: str, question: str) -> BrainAnswer:
        """
        Answer a question from the user's most recent items.

        Failures become user-facing messages; only persistence errors raise.
        """
        items = await self.list_items(user_id, limit=settings.QUERY_FETCH_LIMIT)

        if not items:
            return BrainAnswer(answer=EMPTY_BRAIN_MESSAGE)

        try:
            answer = await self.query_engine.answer_question(question, items)
        except AIConfigError as e:
            logger.warning("Brain query skipped: AI not configured", user_id=user_id, error=str(e))
            return BrainAnswer(answer=NOT_CONFIGURED_MESSAGE)
        except AIQuotaError as e:
            logger.warning(
                "Brain query rejected by quota",
                user_id=user_id,
                retry_after_seconds=e.retry_after_seconds,
            )
            return BrainAnswer(answer=quota_message(e.retry_after_seconds))
        except Exception as e:
            logger.error(
                "Brain query failed",
                user_id=user_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return BrainAnswer(answer=TROUBLE_MESSAGE)

        sources = self.query_engine.resolve_sources(answer, items)
        if not sources:
            # Presentation policy: never show an answer without evidence
            sources = [ConversationSource.from_item(item) for item in items[:DEFAULT_SOURCE_COUNT]]

        return BrainAnswer(answer=answer.answer_text, sources=sources)


# Singleton instance for application use
brain_service = BrainService()
