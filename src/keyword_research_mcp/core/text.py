from __future__ import annotations

import re

STOPWORDS = frozenset(
    {
        "the",
        "and",
        "for",
        "a",
        "of",
        "to",
        "in",
        "on",
        "is",
        "with",
        "by",
        "from",
        "at",
        "how",
        "what",
        "why",
        "when",
        "where",
        "which",
        "an",
        "or",
    }
)

_DISALLOWED = re.compile(r"[^a-z0-9\s\-]")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """Lowercase, strip punctuation except hyphens and collapse whitespace."""
    lowered = (text or "").lower()
    cleaned = _DISALLOWED.sub("", lowered)
    return _WHITESPACE.sub(" ", cleaned).strip()


def tokenize(text: str) -> list[str]:
    return [
        token
        for token in normalize(text).split(" ")
        if len(token) > 1 and token not in STOPWORDS
    ]
