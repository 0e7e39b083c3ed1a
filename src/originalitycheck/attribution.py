"""Heuristic check for whether a matched paper is cited in the references."""

from __future__ import annotations

import math

MIN_TITLE_TOKEN_LENGTH = 4
MAX_REQUIRED_TOKENS = 3
REQUIRED_TOKEN_RATIO = 0.5


def title_tokens(paper_title: str) -> list[str]:
    return [
        token
        for token in paper_title.lower().split()
        if len(token) >= MIN_TITLE_TOKEN_LENGTH
    ]


def is_referenced(paper_title: str, references_text: str) -> bool:
    """True when enough significant title words occur in the references.

    A word counts when it appears anywhere as a substring, so partial hits
    such as ``learn`` inside ``learning`` also count.
    """

    if not references_text:
        return False

    haystack = references_text.lower()
    tokens = title_tokens(paper_title)
    found = sum(1 for token in tokens if token in haystack)
    required = min(MAX_REQUIRED_TOKENS, math.ceil(REQUIRED_TOKEN_RATIO * len(tokens)))
    return found >= required
