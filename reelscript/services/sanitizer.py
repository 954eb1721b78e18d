"""Helpers that isolate a JSON candidate from raw model output."""

from __future__ import annotations

import re

_LEADING_FENCE = re.compile(r"^```[\w-]*\s*")
_TRAILING_FENCE = re.compile(r"\s*```$")
_NEWLINES = re.compile(r"[\r\n]+")
_WHITESPACE = re.compile(r"\s+")


def strip_code_fences(text: str) -> str:
    """Remove surrounding Markdown code fences and outer whitespace.

    Nested fences are peeled until none remain, so the result is stable under
    repeated application.
    """

    cleaned = (text or "").strip()
    while True:
        peeled = _LEADING_FENCE.sub("", cleaned, count=1)
        peeled = _TRAILING_FENCE.sub("", peeled, count=1).strip()
        if peeled == cleaned:
            return cleaned
        cleaned = peeled


def collapse_whitespace(text: str) -> str:
    """Fold newline and whitespace runs into single spaces."""

    cleaned = _NEWLINES.sub(" ", text or "")
    return _WHITESPACE.sub(" ", cleaned).strip()


def strip_and_collapse(text: str) -> str:
    return collapse_whitespace(strip_code_fences(text))
