from __future__ import annotations

from typing import AbstractSet

JACCARD_THRESHOLD = 0.6
SHARED_PAGE_SCORE = 0.3
NEAR_DUPLICATE_SCORE = 0.7
NEAR_DUPLICATE_MAX_DISTANCE = 0.15
NEAR_DUPLICATE_MIN_JACCARD = 0.4
LINK_THRESHOLD = 0.6


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    intersection = len(a & b)
    if intersection == 0:
        return 0.0
    return intersection / (len(a) + len(b) - intersection)


def levenshtein(a: str, b: str) -> int:
    m, n = len(a), len(b)
    matrix = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(m + 1):
        matrix[i][0] = i
    for j in range(n + 1):
        matrix[0][j] = j

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            matrix[i][j] = min(
                matrix[i - 1][j] + 1,
                matrix[i][j - 1] + 1,
                matrix[i - 1][j - 1] + cost,
            )

    return matrix[m][n]


def levenshtein_norm(a: str, b: str) -> float:
    """Edit distance divided by the longer length; two empty strings give 0."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 0.0
    return levenshtein(a, b) / longest


def similarity(
    a: str,
    b: str,
    tokens_a: AbstractSet[str],
    tokens_b: AbstractSet[str],
    pages_a: AbstractSet[str],
    pages_b: AbstractSet[str],
) -> float:
    """Score two normalized keywords as the strongest of three signals.

    Signals are not summed: token overlap counts from 0.6 up, a shared
    landing page contributes 0.3 and a near-duplicate spelling with some
    token agreement contributes 0.7.
    """
    score = 0.0

    overlap = jaccard(tokens_a, tokens_b)
    if overlap >= JACCARD_THRESHOLD:
        score = max(score, overlap)

    if pages_a and pages_b and not pages_a.isdisjoint(pages_b):
        score = max(score, SHARED_PAGE_SCORE)

    if (
        levenshtein_norm(a, b) <= NEAR_DUPLICATE_MAX_DISTANCE
        and overlap >= NEAR_DUPLICATE_MIN_JACCARD
    ):
        score = max(score, NEAR_DUPLICATE_SCORE)

    return score


def is_linked(score: float) -> bool:
    return score >= LINK_THRESHOLD
