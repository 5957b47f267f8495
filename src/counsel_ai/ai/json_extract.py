"""Recover a JSON document from free-form model output.

Models asked for "JSON only" still wrap answers in Markdown fences or
surround them with prose. ``extract_json_text`` peels those layers off
in a fixed order; ``parse_json_response`` parses the result.
"""
from __future__ import annotations

import json
import re
from typing import Any

from counsel_ai.ai.errors import InvalidJsonResponseError

_LEADING_JSON_FENCE = re.compile(r"^```(?:json|JSON)[ \t]*\n?([\s\S]*?)\n?[ \t]*```")
_LEADING_FENCE = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?([\s\S]*?)\n?[ \t]*```")
_ANY_FENCE = re.compile(r"```[A-Za-z0-9_-]*[ \t]*\n?([\s\S]*?)\n?[ \t]*```")
_JSON_SPAN = re.compile(r"(\{[\s\S]*\}|\[[\s\S]*\])")


def extract_json_text(raw: str) -> str:
    """Return the most plausible JSON substring of ``raw``.

    Stages, first match wins for 1-3:
      1. leading ```json fence
      2. leading fence with any (or no) language tag
      3. a fence anywhere in the text
    Then, if the text still does not open with ``{``/``[``, the widest
    ``{...}`` or ``[...]`` span is taken, and anything after the last
    closing brace/bracket is dropped.
    """
    text = raw.strip()

    match = _LEADING_JSON_FENCE.match(text) or _LEADING_FENCE.match(text)
    if match is None:
        match = _ANY_FENCE.search(text)
    if match is not None:
        text = match.group(1).strip()

    if not text.startswith(("{", "[")):
        span = _JSON_SPAN.search(text)
        if span is not None:
            text = span.group(1)

    last_close = max(text.rfind("}"), text.rfind("]"))
    if last_close != -1:
        text = text[: last_close + 1]

    return text.strip()


def parse_json_response(raw: str) -> Any:
    """Extract and parse JSON from model output.

    Raises:
        InvalidJsonResponseError: if the extracted text is not valid JSON.
    """
    extracted = extract_json_text(raw)
    try:
        return json.loads(extracted)
    except json.JSONDecodeError as e:
        raise InvalidJsonResponseError(raw, extracted, reason=e.msg) from e
