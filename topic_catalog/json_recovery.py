from __future__ import annotations

import json
import logging
import re
from typing import Any

from topic_catalog.errors import UnrecoverableModelOutputError

logger = logging.getLogger(__name__)

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")


def strip_markdown_code_fence(text: str) -> str:
    cleaned = _LEADING_FENCE.sub("", text.strip())
    return _TRAILING_FENCE.sub("", cleaned).strip()


def extract_json_candidate(text: str) -> str | None:
    """Return the first bracket-balanced ``{...}`` or ``[...]`` region of ``text``.

    Brackets inside string literals are ignored. Brace and square-bracket
    depths are tracked separately and the region closes when both reach zero.
    """
    start: int | None = None
    brace_depth = 0
    bracket_depth = 0
    in_string = False
    escaped = False

    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
            continue

        if start is None:
            if char == "{":
                start = index
                brace_depth = 1
            elif char == "[":
                start = index
                bracket_depth = 1
            continue

        if char == "{":
            brace_depth += 1
        elif char == "}":
            brace_depth -= 1
        elif char == "[":
            bracket_depth += 1
        elif char == "]":
            bracket_depth -= 1

        if brace_depth == 0 and bracket_depth == 0:
            return text[start : index + 1]

    return None


def recover_json_value(raw: str) -> Any:
    cleaned = strip_markdown_code_fence(raw or "")
    if not cleaned:
        raise UnrecoverableModelOutputError("AI returned an empty response.")

    try:
        return json.loads(cleaned)
    except (json.JSONDecodeError, RecursionError):
        logger.debug("AI output is not plain JSON; scanning for an embedded value.")

    candidate = extract_json_candidate(cleaned)
    if candidate is None:
        raise UnrecoverableModelOutputError("AI output does not contain valid JSON.")

    try:
        return json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise UnrecoverableModelOutputError(f"AI output contains malformed JSON: {exc}") from exc
    except RecursionError as exc:
        raise UnrecoverableModelOutputError("AI output JSON is nested too deeply to parse.") from exc
