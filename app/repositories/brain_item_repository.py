"""
Repository for the brain_items table.

Rows come back newest first and already scoped to one user; callers never
see another user's items.
"""

from app.db.helpers import execute_query, fetch_all, fetch_one
from app.models.domain.brain_domain import BrainItem, EnrichmentResult

ITEM_COLUMNS = (
    "id, user_id, title, content, type, tags, ai_summary, ai_tags, ai_category, "
    "created_at, updated_at"
)


class BrainItemRepository:
    """Plain CRUD over brain_items."""

    async def list_items(
        self,
        user_id: str,
        *,
        limit: int = 50,
        search: str | None = None,
        item_type: str | None = None,
        tag: str | None = None,
    ) -> list[BrainItem]:
        clauses = ["user_id = %s"]
        params: list = [user_id]

        if search and search.strip():
            pattern = f"%{search.strip()}%"
            clauses.append("(title ILIKE %s OR content ILIKE %s OR ai_summary ILIKE %s)")
            params.extend([pattern, pattern, pattern])

        if item_type and item_type != "all":
            clauses.append("type = %s")
            params.append(item_type)

        if tag:
            clauses.append("(%s = ANY(ai_tags) OR %s = ANY(tags))")
            params.extend([tag, tag])

        params.append(limit)
        query = (
            f"SELECT {ITEM_COLUMNS} FROM brain_items "
            f"WHERE {' AND '.join(clauses)} "
            "ORDER BY created_at DESC LIMIT %s"
        )
        rows = await fetch_all(query, tuple(params))
        return [BrainItem.from_row(row) for row in rows]

    async def insert_item(
        self,
        user_id: str,
        title: str,
        content: str,
        item_type: str,
        enrichment: EnrichmentResult,
    ) -> BrainItem | None:
        tags = list(enrichment.tags)
        row = await fetch_one(
            f"""
            INSERT INTO brain_items
                (user_id, title, content, type, tags, ai_summary, ai_tags, ai_category)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            RETURNING {ITEM_COLUMNS}
            """,
            (user_id, title, content, item_type, tags, enrichment.summary, tags, enrichment.category),
        )
        return BrainItem.from_row(row) if row else None

    async def delete_item(self, user_id: str, item_id: str) -> bool:
        deleted = await execute_query(
            "DELETE FROM brain_items WHERE id = %s AND user_id = %s",
            (item_id, user_id),
        )
        return deleted > 0


brain_item_repository = BrainItemRepository()
