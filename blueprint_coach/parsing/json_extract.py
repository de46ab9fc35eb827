# blueprint_coach/parsing/json_extract.py
"""
Tolerant JSON extraction from model replies.

Coaching replies often mix prose with one or more JSON blocks ("Here's an
example: {...} and here are your phases: [...]"), or stop mid-list when the
model hits its token limit. extract_json scans every embedded JSON value,
prefers the one carrying the record keys the caller asked for, and cuts a
truncated payload back to its last complete element.
"""

import json
import re
from collections.abc import Iterator, Sequence
from typing import Any

_decoder = json.JSONDecoder()

_FENCE_RE = re.compile(r"```(?:json)?\s*\n(.*?)\n?```", re.DOTALL | re.IGNORECASE)

_CLOSERS = {"{": "}", "[": "]"}


def iter_json_values(text: str) -> Iterator[tuple[int, int, Any]]:
    """
    Yield (start, end, value) for each top-level JSON object or array
    embedded in text, left to right. A value cut off at the end of the text
    is yielded repaired, and ends the scan.
    """
    position = 0
    while True:
        starts = [i for i in (text.find("{", position), text.find("[", position)) if i != -1]
        if not starts:
            return
        start = min(starts)
        try:
            value, end = _decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            repaired = repair_truncated(text[start:])
            if repaired is not None:
                yield start, len(text), repaired
                return
            position = start + 1
            continue
        yield start, end, value
        position = end


def _matches(value: Any, keys: Sequence[str]) -> bool:
    if isinstance(value, list):
        return bool(value)
    return isinstance(value, dict) and any(key in value for key in keys)


def _element_boundaries(fragment: str) -> list[tuple[int, str]]:
    """
    Cut points in a truncated JSON fragment, latest first.

    Each entry is (prefix length, closing suffix): the prefix ends right after
    a complete element inside an open container, and the suffix closes every
    container still open at that point.
    """
    stack: list[str] = []
    boundaries: list[tuple[int, str]] = []
    in_string = False
    escape = False
    for index, ch in enumerate(fragment):
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in "}]":
            if not stack:
                break
            stack.pop()
            if stack:
                boundaries.append((index + 1, "".join(reversed(stack))))
        elif ch == "," and stack:
            boundaries.append((index, "".join(reversed(stack))))
    boundaries.reverse()
    return boundaries


def repair_truncated(fragment: str) -> Any | None:
    """Close a truncated object or array at its last complete element."""
    for cut, suffix in _element_boundaries(fragment):
        try:
            return json.loads(fragment[:cut].rstrip().rstrip(",") + suffix)
        except json.JSONDecodeError:
            continue
    return None


def extract_json(raw_output: str, keys: Sequence[str] = ()) -> Any:
    """
    Extract the JSON payload from a model reply.

    Args:
        raw_output: Model text, possibly with prose or code fences
        keys: Record keys the caller expects ("phases", "criteria", ...).
            A non-empty list, or an object with one of these keys, wins over
            other JSON values in the reply.

    Returns:
        The preferred JSON value, or else the first one found (a truncated
        payload counts once repaired)

    Raises:
        ValueError: If the reply contains no recoverable JSON
    """
    stripped = raw_output.strip()
    if not stripped:
        raise ValueError("Empty output contains no JSON")

    fence = _FENCE_RE.search(stripped)
    text = fence.group(1) if fence else stripped

    values = [value for _, _, value in iter_json_values(text)]
    for value in values:
        if _matches(value, keys):
            return value
    if values:
        return values[0]

    preview = raw_output[:200].replace("\n", "\\n")
    raise ValueError(
        f"Could not extract valid JSON from output ({len(raw_output)} chars). "
        f"Preview: {preview}"
    )
