"""Defensive parsing of model replies into ``ParsedIdeaFields``."""

from __future__ import annotations

import json
import re
from typing import Any

from innovative_sphere.errors import ParseError
from innovative_sphere.models import ParsedIdeaFields

TITLE_MAX_LENGTH = 100
LIST_LIMITS = {
    "technologies": 10,
    "features": 15,
    "objectives": 10,
    "challenges": 8,
}

OUTERMOST_BRACES_RE = re.compile(r"\{.*\}", re.DOTALL)


def _strip_json_fence(text: str) -> str:
    """Remove a surrounding Markdown JSON code fence when present."""
    fenced = re.match(r"^```(?:json)?\s*(.*?)\s*```$", text, re.DOTALL)
    if fenced:
        return fenced.group(1).strip()
    return text.strip()


def _try_loads(candidate: str) -> Any | None:
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        return None


def extract_json_object(raw: str) -> Any:
    """Decode the JSON payload embedded in ``raw``.

    Strict parsing is tried first (whole text, then fence-stripped text); the
    greedy first-``{``-to-last-``}`` match is the fallback for replies wrapped
    in prose.

    Raises:
        ParseError: If no brace pair exists or the extracted block is not JSON.
    """
    text = raw.strip()

    for candidate in (text, _strip_json_fence(text)):
        data = _try_loads(candidate)
        if isinstance(data, dict):
            return data

    match = OUTERMOST_BRACES_RE.search(text)
    if not match:
        raise ParseError("No JSON found in response")

    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ParseError(f"Failed to parse idea JSON: {exc}") from exc


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def _bounded_list(value: Any, limit: int) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [_as_text(item) for item in value if item is not None][:limit]


def parse_idea_fields(raw: str) -> ParsedIdeaFields:
    """Parse a model reply into normalized idea fields.

    Only ``title`` and ``description`` are mandatory. List fields of the wrong
    type collapse to empty lists; all lists and the title are truncated to
    their bounds.

    Raises:
        ParseError: If no JSON object can be recovered or mandatory fields are missing.
    """
    if not isinstance(raw, str):
        raise ParseError("Model reply is not text")

    data = extract_json_object(raw)
    if not isinstance(data, dict) or not data.get("title") or not data.get("description"):
        raise ParseError("Invalid idea format: title and description are required")

    lists = {field: _bounded_list(data.get(field), limit) for field, limit in LIST_LIMITS.items()}
    duration = data.get("estimatedDuration")

    return ParsedIdeaFields(
        title=_as_text(data["title"])[:TITLE_MAX_LENGTH],
        description=_as_text(data["description"]),
        estimated_duration="" if duration is None else _as_text(duration),
        **lists,
    )
