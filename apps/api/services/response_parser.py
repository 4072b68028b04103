"""Extract, parse, and shape-check JSON content from LLM completions."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from services.errors import ParseError, ShapeError

logger = logging.getLogger(__name__)


def _field(value: Any, name: str) -> Any:
    if isinstance(value, dict):
        return value.get(name)
    return getattr(value, name, None)


def _first_choice(completion: Any) -> Any:
    choices = _field(completion, "choices") or []
    return choices[0] if choices else None


def extract_content(completion: Any) -> str:
    """Return the canonical text of the first choice's message, or ''."""
    choice = _first_choice(completion)
    if choice is None:
        return ""
    content = _field(_field(choice, "message"), "content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        for part in content:
            if isinstance(part, str):
                return part
            if _field(part, "type") == "text":
                text = _field(part, "text")
                return text if isinstance(text, str) else ""
    return ""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def parse_json_content(completion: Any, label: str) -> Any:
    """Parse the completion text as JSON, raising ParseError when it yields nothing."""
    raw = extract_content(completion)
    try:
        parsed = json.loads(raw, parse_constant=_reject_constant)
    except (TypeError, ValueError) as exc:
        raise ParseError(label) from exc
    if parsed is None:
        raise ParseError(label)
    return parsed


def as_object(completion: Any, label: str) -> Dict[str, Any]:
    parsed = parse_json_content(completion, label)
    if not isinstance(parsed, dict):
        raise ShapeError(label, f"{label} response was not an object")
    return parsed


def as_array(completion: Any, label: str) -> List[Any]:
    parsed = parse_json_content(completion, label)
    if not isinstance(parsed, list):
        raise ShapeError(label, f"{label} response was not an array")
    return parsed


def validate_fields(parsed: Any, schema: Type[BaseModel], label: str) -> BaseModel:
    """Check a parsed payload against a per-kind schema, raising ShapeError on mismatch."""
    try:
        return schema.model_validate(parsed)
    except PydanticValidationError as exc:
        errors = exc.errors(include_url=False)
        raise ShapeError(label, f"{label} response did not match the expected fields", errors) from exc


def safe_parse(value: Any) -> Optional[Any]:
    """
    Best-effort re-parse of a stored JSON payload.

    Non-string values are returned unchanged. Strings that fail to parse
    yield None instead of raising.
    """
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError as exc:
        logger.warning("Failed to parse stored JSON payload: %s", exc)
        return None
