"""Extraction of a JSON object embedded in free-form model output."""

import json
from typing import Any, Dict


def extract_json_object(text: str) -> str:
    """Return the first balanced ``{...}`` substring of ``text``.

    Braces inside JSON string literals (including escaped quotes) do not
    count towards the nesting depth. Raises ``ValueError`` when the text
    holds no opening brace or the first object is never closed.
    """
    start = text.find("{")
    if start == -1:
        raise ValueError("No JSON object found in text")

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
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
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]

    raise ValueError("Unbalanced JSON object in text")


def load_json_object(text: str) -> Dict[str, Any]:
    """Extract and decode the first JSON object in ``text``.

    Raises ``ValueError`` (``json.JSONDecodeError`` is a subclass) when no
    object can be decoded.
    """
    return json.loads(extract_json_object(text))
