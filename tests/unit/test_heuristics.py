"""
Tests for the offline summary, tag and category heuristics.
"""

from app.models.domain.brain_domain import CATEGORY_NAMES
from app.services.ai.heuristics import (
    EMPTY_SUMMARY_PLACEHOLDER,
    infer_category,
    infer_summary,
    infer_tags,
)

REACT_TITLE = "Intro to React Hooks"
REACT_CONTENT = (
    "React hooks let you use state in functional components. "
    "useEffect handles side effects. "
    "This pattern replaced class lifecycle methods."
)


def test_react_note_summary_prefers_later_sentences():
    summary = infer_summary(REACT_TITLE, REACT_CONTENT)

    assert summary == (
        "React hooks let you use state in functional components. "
        "This pattern replaced class lifecycle methods."
    )
    assert summary != "React hooks let you use state in functional components."


def test_react_note_tags_and_category():
    assert "web-development" in infer_tags(REACT_TITLE, REACT_CONTENT)
    assert infer_category(REACT_TITLE, REACT_CONTENT) == "Technology"


def test_importance_keyword_outranks_opening():
    content = (
        "The meeting started a little later than planned today. "
        "We talked through the roadmap for the next quarter in detail. "
        "The key conclusion is that onboarding must be simplified first."
    )

    summary = infer_summary("Weekly sync", content)

    assert summary.startswith("The key conclusion is that onboarding must be simplified first")


def test_summary_without_candidate_sentences_truncates_at_word_boundary():
    long_text = " ".join(["lorem"] * 20) + " " + "x" * 200

    summary = infer_summary("Title", long_text)

    assert summary.endswith("...")
    assert len(summary) <= 153
    assert not summary[:-3].endswith(" ")


def test_short_content_is_returned_as_is():
    assert infer_summary("Title", "Too short.") == "Too short."


def test_empty_content_falls_back_to_title():
    assert infer_summary("Only a title", "") == "Only a title"


def test_empty_everything_is_never_blank():
    assert infer_summary("", "") == EMPTY_SUMMARY_PLACEHOLDER


def test_tags_capped_at_four_in_pattern_order():
    text = "React frontend with a neural model, an llm chatbot, python code and a rest api on postgres"

    tags = infer_tags("Stack notes", text)

    assert tags == ["web-development", "machine-learning", "artificial-intelligence", "programming"]


def test_tags_fallback_to_general():
    assert infer_tags("Groceries", "Eggs, milk and bread") == ["general"]


def test_category_priority_order():
    # "startup" is Business, "design" would be Creative; Business wins by order
    assert infer_category("Startup branding", "Logo design ideas for the startup") == "Business"
    assert infer_category("Morning routine", "Meditation and sleep habits") == "Personal"
    assert infer_category("Exam prep", "Study plan for the university course") == "Learning"
    assert infer_category("Standup", "Notes from the standup about the jira board") == "Work"


def test_category_default():
    assert infer_category("Groceries", "Eggs, milk and bread") == "Technology"
    assert infer_category("Groceries", "Eggs, milk and bread") in CATEGORY_NAMES


def test_heuristics_are_deterministic():
    for func in (infer_summary, infer_tags, infer_category):
        assert func(REACT_TITLE, REACT_CONTENT) == func(REACT_TITLE, REACT_CONTENT)
