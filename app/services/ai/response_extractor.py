"""
Structured Response Extractor
Pulls a JSON payload out of free-form model text.

Models wrap JSON in prose or markdown fences despite instructions, so three
strategies are tried in order: the whole text, the first fenced block, then
the span from the first "{" to the last "}".
"""

import json
import re
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from app.infrastructure.observability.logging import get_logger
from app.services.ai.errors import AIParseError

logger = get_logger(__name__)

EXCERPT_CHARS = 200

_FENCE_RE = re.compile(r"```(?:[\w-]+)?\s*\n?([\s\S]*?)\n?\s*```")

ModelT = TypeVar("ModelT", bound=BaseModel)


def _excerpt(text: str) -> str:
    return text[:EXCERPT_CHARS]


def _try_parse(candidate: str) -> tuple[bool, Any]:
    try:
        return True, json.loads(candidate)
    except (json.JSONDecodeError, TypeError):
        return False, None


def extract_json(raw_text: str) -> Any:
    """
    Parse JSON from model output.

    Args:
        raw_text: Model response text

    Returns:
        Decoded JSON value

    Raises:
        AIParseError: If none of the strategies yields valid JSON
    """
    text = raw_text or ""

    ok, value = _try_parse(text)
    if ok:
        return value

    fence = _FENCE_RE.search(text)
    if fence:
        ok, value = _try_parse(fence.group(1).strip())
        if ok:
            logger.debug("Extracted JSON from fenced block")
            return value

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        ok, value = _try_parse(text[start : end + 1])
        if ok:
            logger.debug("Extracted JSON from brace span")
            return value

    excerpt = _excerpt(text)
    raise AIParseError(f"Could not extract JSON from: {excerpt}", excerpt=excerpt)


def extract_structured(raw_text: str, schema: type[ModelT]) -> ModelT:
    """
    Extract JSON and validate it into a typed record.

    Raises:
        AIParseError: If extraction or validation fails
    """
    data = extract_json(raw_text)
    try:
        return schema.model_validate(data)
    except ValidationError as e:
        excerpt = _excerpt(raw_text or "")
        raise AIParseError(
            f"Model output did not match {schema.__name__}: {e.error_count()} error(s)",
            excerpt=excerpt,
        ) from e
