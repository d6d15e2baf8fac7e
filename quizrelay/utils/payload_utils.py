"""
Utilities for pulling the {"answer", "explanation"} payload out of assistant replies.

Replies arrive as free text while they are still streaming, so everything here
treats its input as untrusted and possibly incomplete:
- A fenced code block (optionally language-tagged) wins if present
- Otherwise a brace-delimited object that mentions both keys
- Otherwise the whole text is tried as JSON
Nothing in this module raises on bad input; "no payload yet" is returned as None.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterator, Optional

from ..models import ExtractedPayload


# Zero-width space/non-joiner/joiner and the byte-order mark
_INVISIBLE_RE = re.compile("[\u200b-\u200d\ufeff]")

# ```json ... ``` or ``` ... ```; tag is any word-ish run right after the fence
_FENCED_BLOCK_RE = re.compile(r"```(?:[\w+-]+)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

# Object mentioning both keys; used by the extractor and the late-arrival rescue
_STRICT_OBJECT_RE = re.compile(r'\{[\s\S]*?"answer"[\s\S]*?"explanation"[\s\S]*?\}', re.IGNORECASE)

# Object mentioning only the answer key; used on whole reply text
_RELAXED_OBJECT_RE = re.compile(r'\{[\s\S]*?"answer"[\s\S]*?\}')

# An object whose first key is "answer"
_ANSWER_FIRST_RE = re.compile(r'\{\s*"answer"', re.IGNORECASE)


def clean_text(text: str) -> str:
    """Strip invisible characters and surrounding whitespace."""
    return _INVISIBLE_RE.sub("", text or "").strip()


def looks_like_payload_block(text: str) -> bool:
    """Cheap pre-filter for code blocks: must contain a brace and the answer key."""
    return bool(text) and "{" in text and '"answer"' in text


def _balanced_object(text: str, start: int) -> Optional[str]:
    """
    Return text[start:end] where end closes the brace opened at start.

    String literals are skipped so braces inside answers don't count.
    Returns None if the object is not closed yet.
    """
    if start >= len(text) or text[start] != "{":
        return None

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
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]

    return None


def _object_spans(pattern: re.Pattern, text: str) -> Iterator[str]:
    """Yield a candidate span for every opening brace the pattern matches from."""
    pos = 0
    while True:
        match = pattern.search(text, pos)
        if not match:
            return

        # The lazy pattern stops at the first closing brace after the keys, which
        # cuts nested answers short; prefer the brace-matched span when it covers it.
        candidate = match.group(0)
        balanced = _balanced_object(text, match.start())
        if balanced and len(balanced) >= len(candidate):
            candidate = balanced
        yield candidate

        pos = match.start() + 1


def _search_object(pattern: re.Pattern, text: str) -> Optional[str]:
    """
    First span that parses as an object with an "answer" key.

    Braces earlier in the prose (set notation, templates) start spans that
    never parse, so later braces are tried too. When nothing parses, the first
    span opening directly on the "answer" key is returned as-is.
    """
    shaped = None
    for candidate in _object_spans(pattern, text or ""):
        parsed = _parse_object(candidate)
        if parsed is not None and "answer" in parsed:
            return candidate
        if shaped is None and _ANSWER_FIRST_RE.match(candidate):
            shaped = candidate
    return shaped


def find_payload_object(text: str) -> Optional[str]:
    """Find a brace-delimited object containing both "answer" and "explanation"."""
    return _search_object(_STRICT_OBJECT_RE, text)


def find_answer_object(text: str) -> Optional[str]:
    """Find a brace-delimited object containing at least "answer"."""
    return _search_object(_RELAXED_OBJECT_RE, text)


def _parse_object(candidate: str) -> Optional[dict]:
    try:
        parsed: Any = json.loads(candidate)
    except (ValueError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_payload(text: str) -> Optional[ExtractedPayload]:
    """
    Extract the answer payload from a blob of reply text.

    Args:
        text: Code block text or full message text

    Returns:
        ExtractedPayload (with the exact candidate text in .raw), or None when
        the text holds no parseable object with a non-null "answer"
    """
    if not isinstance(text, str):
        return None

    cleaned = clean_text(text)
    if not cleaned:
        return None

    fenced = _FENCED_BLOCK_RE.search(cleaned)
    candidate = fenced.group(1).strip() if fenced else ""

    if not candidate:
        candidate = find_payload_object(cleaned) or cleaned

    parsed = _parse_object(candidate)
    if parsed is None or parsed.get("answer") is None:
        return None

    explanation = parsed.get("explanation")
    if explanation is None:
        explanation = ""
    elif not isinstance(explanation, str):
        explanation = str(explanation)

    return ExtractedPayload(answer=parsed["answer"], explanation=explanation, raw=candidate)
