"""
Extraction of JSON values embedded in free-form model output.

Chat models wrap JSON in prose, markdown fences, or trailing commentary even
when told not to. The parser scans for bracket-balanced spans (ignoring
brackets inside string literals), parses each candidate, and returns the
largest one of the requested kind.
"""

import json
from typing import Any, Literal, Optional

from tab_prioritizer.config import get_logger
from tab_prioritizer.errors import MalformedResponse

logger = get_logger(__name__)

JsonKind = Literal["object", "array"]

_BRACKETS = {
    "object": ("{", "}", dict),
    "array": ("[", "]", list),
}


def _matching_close(text: str, start: int, open_ch: str, close_ch: str) -> Optional[int]:
    """Index of the bracket closing the one at ``start``, or None if unbalanced."""
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return i

    return None


def _try_load(candidate: str, expected: type) -> Optional[Any]:
    try:
        value = json.loads(candidate)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, expected) else None


def extract_json(text: Optional[str], kind: JsonKind = "object") -> Any:
    """
    Extract a JSON object or array from possibly noisy model output.

    Args:
        text: Raw provider response
        kind: "object" for ``{...}`` responses, "array" for ``[...]``

    Returns:
        The parsed dict (object) or list (array)

    Raises:
        MalformedResponse: If no JSON value of the requested kind is recoverable
    """
    open_ch, close_ch, expected = _BRACKETS[kind]

    if not isinstance(text, str) or not text.strip():
        raise MalformedResponse("Empty response from inference provider")

    # Try direct parse
    value = _try_load(text.strip(), expected)
    if value is not None:
        return value

    best: Any = None
    best_length = -1
    pos = 0
    while True:
        start = text.find(open_ch, pos)
        if start == -1:
            break

        end = _matching_close(text, start, open_ch, close_ch)
        if end is None:
            pos = start + 1
            continue

        value = _try_load(text[start:end + 1], expected)
        if value is None:
            # Nested spans may still hold valid JSON
            pos = start + 1
            continue

        if end + 1 - start > best_length:
            best = value
            best_length = end + 1 - start
        pos = end + 1

    if best_length >= 0:
        return best

    # Greedy match: first opening to last closing bracket
    first = text.find(open_ch)
    last = text.rfind(close_ch)
    if first != -1 and last > first:
        value = _try_load(text[first:last + 1], expected)
        if value is not None:
            return value

    logger.debug(f"Could not extract JSON {kind} from: {text[:100]}")
    raise MalformedResponse(f"No JSON {kind} found in provider response")


def extract_json_object(text: Optional[str]) -> dict:
    """Extract the JSON object embedded in ``text``."""
    return extract_json(text, "object")


def extract_json_array(text: Optional[str]) -> list:
    """Extract the JSON array embedded in ``text``."""
    return extract_json(text, "array")
