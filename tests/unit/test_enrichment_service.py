"""
Tests for the metadata enrichment pipeline.
"""

import json
import re

import httpx
import openai
import pytest
import structlog
from structlog.testing import capture_logs

from app.models.domain.brain_domain import CATEGORY_NAMES
from app.services.enrichment_service import EnrichmentService, normalize_tags

REACT_TITLE = "Intro to React Hooks"
REACT_CONTENT = (
    "React hooks let you use state in functional components. "
    "useEffect handles side effects. "
    "This pattern replaced class lifecycle methods."
)

TAG_SHAPE = re.compile(r"^\S+$")


def _status_error(cls, status_code: int, message: str):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    response = httpx.Response(status_code, request=request)
    return cls(message, response=response, body=None)


def _assert_well_formed(result):
    assert len(result.summary) > 0
    assert 0 <= len(result.tags) <= 5
    for tag in result.tags:
        assert tag == tag.lower()
        assert TAG_SHAPE.match(tag)
    assert result.category in CATEGORY_NAMES


@pytest.fixture
def service(model_client):
    return EnrichmentService(client=model_client)


@pytest.mark.asyncio
async def test_model_metadata_is_used(service, fake_openai):
    fake_openai.completions.queue(
        json.dumps(
            {
                "summary": "A walkthrough of how hooks bring state to function components.",
                "tags": ["React Hooks", "state-management", "note"],
                "category": "technology",
            }
        )
    )

    result = await service.generate_metadata(REACT_TITLE, REACT_CONTENT)

    assert result.summary.startswith("A walkthrough of how hooks")
    assert result.tags == ("react-hooks", "state-management")
    assert result.category == "Technology"


@pytest.mark.asyncio
async def test_fenced_model_output_is_accepted(service, fake_openai):
    fake_openai.completions.queue(
        'Here you go:\n```json\n{"summary": "Budgeting basics for a new startup team.", '
        '"tags": ["budgeting"], "category": "Business"}\n```'
    )

    result = await service.generate_metadata("Budget", "How we plan our startup budget.")

    assert result.category == "Business"
    assert result.tags == ("budgeting",)


@pytest.mark.asyncio
async def test_weak_fields_are_repaired_individually(service, fake_openai):
    fake_openai.completions.queue(
        json.dumps({"summary": "short", "tags": ["idea", "  "], "category": "Cooking"})
    )

    result = await service.generate_metadata(REACT_TITLE, REACT_CONTENT)

    assert result.summary.startswith("React hooks let you use state")
    assert "web-development" in result.tags
    assert result.category == "Technology"


@pytest.mark.asyncio
async def test_tags_capped_at_five(service, fake_openai):
    fake_openai.completions.queue(
        json.dumps(
            {
                "summary": "A long enough summary of many topics.",
                "tags": ["a", "b", "c", "d", "e", "f", "g"],
                "category": "Work",
            }
        )
    )

    result = await service.generate_metadata("Many", "Many topics.")

    assert result.tags == ("a", "b", "c", "d", "e")


@pytest.mark.asyncio
async def test_model_failure_falls_back_to_heuristics(service, fake_openai):
    fake_openai.completions.queue(ConnectionError("network down"))

    result = await service.generate_metadata(REACT_TITLE, REACT_CONTENT)

    _assert_well_formed(result)
    assert "web-development" in result.tags or "programming" in result.tags
    assert result.category == "Technology"
    assert result.summary != "React hooks let you use state in functional components."
    assert result.summary.count(".") == 2


@pytest.mark.asyncio
async def test_unparseable_output_falls_back(service, fake_openai):
    fake_openai.completions.queue("I cannot help with that.")

    result = await service.generate_metadata(REACT_TITLE, REACT_CONTENT)

    _assert_well_formed(result)
    assert result.category == "Technology"


@pytest.mark.asyncio
async def test_non_object_json_falls_back(service, fake_openai):
    fake_openai.completions.queue('["react", "hooks"]')

    result = await service.generate_metadata(REACT_TITLE, REACT_CONTENT)

    _assert_well_formed(result)


@pytest.mark.asyncio
async def test_quota_rejection_falls_back(service, governor, fake_openai):
    governor.mark_exhausted()

    result = await service.generate_metadata(REACT_TITLE, REACT_CONTENT)

    _assert_well_formed(result)
    assert fake_openai.completions.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "title,content",
    [
        ("", ""),
        ("   ", "\n\n"),
        ("Only title", ""),
        ("x" * 500, "y" * 40_000),
        ("Groceries", "Eggs, milk and bread"),
    ],
)
async def test_always_well_formed_when_model_always_fails(service, fake_openai, title, content):
    fake_openai.completions.queue(RuntimeError("boom"))

    result = await service.generate_metadata(title, content)

    _assert_well_formed(result)


@pytest.mark.asyncio
async def test_long_content_is_truncated_in_prompt(service, fake_openai, monkeypatch):
    monkeypatch.setattr("app.services.enrichment_service.settings.AI_CONTENT_CHAR_BUDGET", 100)
    fake_openai.completions.queue(RuntimeError("boom"))

    await service.generate_metadata("Long", "z" * 1000)

    prompt = fake_openai.completions.calls[0]["messages"][-1]["content"]
    assert "z" * 100 in prompt
    assert "z" * 101 not in prompt
    assert "[...remaining content truncated...]" in prompt


def test_normalize_tags():
    assert normalize_tags(["Machine Learning", " API  Design ", "general", "Note"]) == [
        "machine-learning",
        "api-design",
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "failure,expected_level",
    [
        ("quota", "warning"),
        ("config", "warning"),
        (ConnectionError("network down"), "error"),
    ],
)
async def test_fallback_log_level(
    service, governor, fake_openai, monkeypatch, failure, expected_level
):
    if failure == "quota":
        governor.mark_exhausted()
    elif failure == "config":
        fake_openai.completions.queue(
            _status_error(openai.AuthenticationError, 401, "Incorrect API key provided")
        )
    else:
        fake_openai.completions.queue(failure)

    with capture_logs() as logs:
        monkeypatch.setattr("app.services.enrichment_service.logger", structlog.get_logger())
        result = await service.generate_metadata(REACT_TITLE, REACT_CONTENT)

    _assert_well_formed(result)
    fallback_logs = [log for log in logs if "offline heuristics" in log["event"]]
    assert [log["log_level"] for log in fallback_logs] == [expected_level]
