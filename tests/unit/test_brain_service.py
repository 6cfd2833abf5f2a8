"""
Tests for the request-facing brain operations.
"""

import pytest

from app.db.helpers import DatabaseError
from app.services.ai.errors import AIUpstreamError
from app.services.brain_query_service import BrainQueryService
from app.services.brain_service import (
    EMPTY_BRAIN_MESSAGE,
    NOT_CONFIGURED_MESSAGE,
    TROUBLE_MESSAGE,
    BrainService,
    BrainServiceError,
    BrainValidationError,
)
from app.services.enrichment_service import EnrichmentService
from tests.fakes import FakeRepository


def _service(model_client, items=None):
    repository = FakeRepository(items)
    service = BrainService(
        repository=repository,
        enrichment=EnrichmentService(client=model_client),
        query_engine=BrainQueryService(client=model_client),
    )
    return service, repository


@pytest.mark.asyncio
async def test_empty_brain_short_circuits(model_client, fake_openai):
    service, _ = _service(model_client)

    result = await service.ask("user-123", "What do I know?")

    assert result.answer == EMPTY_BRAIN_MESSAGE
    assert result.sources == []
    assert fake_openai.completions.calls == []


@pytest.mark.asyncio
async def test_answer_with_cited_sources(model_client, fake_openai, brain_items):
    service, _ = _service(model_client, brain_items)
    fake_openai.completions.queue("Per [2], yes.")

    result = await service.ask("user-123", "Anything?")

    assert result.answer == "Per [2], yes."
    assert [s.id for s in result.sources] == ["item-2"]


@pytest.mark.asyncio
async def test_uncited_answer_shows_first_two_items(model_client, fake_openai, brain_items):
    service, _ = _service(model_client, brain_items)
    fake_openai.completions.queue("Nothing in your notes covers that [7].")

    result = await service.ask("user-123", "Anything?")

    assert [s.id for s in result.sources] == ["item-1", "item-2"]


@pytest.mark.asyncio
async def test_not_configured_message(governor, brain_items, monkeypatch):
    monkeypatch.setattr("app.services.ai.model_client.settings.OPENAI_API_KEY", None)
    from app.services.ai.model_client import ModelClient

    service, _ = _service(ModelClient(governor=governor), brain_items)

    result = await service.ask("user-123", "Anything?")

    assert result.answer == NOT_CONFIGURED_MESSAGE
    assert result.sources == []


@pytest.mark.asyncio
async def test_quota_message_mentions_wait(model_client, governor, brain_items):
    service, _ = _service(model_client, brain_items)
    governor.mark_exhausted()

    result = await service.ask("user-123", "Anything?")

    assert "in about 60s" in result.answer
    assert result.sources == []


@pytest.mark.asyncio
async def test_upstream_failure_is_friendly(model_client, fake_openai, brain_items):
    service, _ = _service(model_client, brain_items)
    fake_openai.completions.queue(ConnectionError("reset"))

    result = await service.ask("user-123", "Anything?")

    assert result.answer == TROUBLE_MESSAGE


@pytest.mark.asyncio
async def test_unexpected_query_error_is_friendly(model_client, brain_items):
    service, _ = _service(model_client, brain_items)

    async def broken(question, items):
        raise AIUpstreamError("boom")

    service.query_engine.answer_question = broken

    result = await service.ask("user-123", "Anything?")

    assert result.answer == TROUBLE_MESSAGE


@pytest.mark.asyncio
async def test_create_item_saves_with_fallback_metadata(model_client, fake_openai):
    service, repository = _service(model_client)
    fake_openai.completions.queue(RuntimeError("boom"))

    item = await service.create_item(
        "user-123",
        "Intro to React Hooks",
        "React hooks let you use state in functional components. "
        "useEffect handles side effects. "
        "This pattern replaced class lifecycle methods.",
    )

    assert item.id == "item-1"
    assert item.category == "Technology"
    assert "web-development" in item.ai_tags
    assert repository.inserted[0]["type"] == "note"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "title,content,item_type",
    [("", "body", "note"), ("Title", "   ", "note"), ("Title", "body", "video")],
)
async def test_create_item_validation(model_client, fake_openai, title, content, item_type):
    service, repository = _service(model_client)

    with pytest.raises(BrainValidationError):
        await service.create_item("user-123", title, content, item_type)

    assert repository.inserted == []
    assert fake_openai.completions.calls == []


@pytest.mark.asyncio
async def test_list_failure_raises_service_error(model_client):
    service, repository = _service(model_client)

    async def failing(*args, **kwargs):
        raise DatabaseError("connection refused")

    repository.list_items = failing

    with pytest.raises(BrainServiceError) as exc_info:
        await service.ask("user-123", "Anything?")

    assert exc_info.value.operation == "list_items"


@pytest.mark.asyncio
async def test_delete_item(model_client, brain_items):
    service, _ = _service(model_client, brain_items)

    assert await service.delete_item("user-123", "item-1") is True
    assert await service.delete_item("user-123", "item-1") is False
    assert await service.delete_item("someone-else", "item-2") is False
