from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

NORM_PIVOT = 1000.0

IMPRESSIONS_WEIGHT = 0.35
CTR_WEIGHT = 0.25
POSITION_WEIGHT = 0.20
NEW_PAGE_WEIGHT = 0.15

LOW_CTR = 0.02
TOP_POSITION = 5.0
STRIKING_DISTANCE_MAX = 15.0


@dataclass
class ClusterScore:
    priority: int
    recommendations: list[str]


def average(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def saturate(value: float) -> float:
    """Map an unbounded non-negative metric into [0, 1)."""
    safe = max(0.0, value)
    return min(1.0, safe / (safe + NORM_PIVOT))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_page_aggregate(
    impressions: float,
    clicks: float,
    positions: Sequence[float],
    ctrs: Sequence[float],
) -> float:
    return 0.6 * impressions + 5 * clicks - 50 * average(positions) + 1000 * average(ctrs)


def priority_score(
    sum_impressions: float,
    avg_ctr: float,
    avg_position: float,
    *,
    new_page: bool,
) -> int:
    raw = (
        IMPRESSIONS_WEIGHT * saturate(sum_impressions)
        + CTR_WEIGHT * saturate(avg_ctr)
        + POSITION_WEIGHT * (1 - saturate(avg_position))
        + NEW_PAGE_WEIGHT * (1 if new_page else 0)
    )
    return _round_half_up(100 * raw)


def recommendation_messages(
    mapped_type: str,
    avg_position: float,
    avg_ctr: float,
    label: str,
) -> list[str]:
    # A new-page cluster without position samples averages to 0 and never
    # gets the "create" recommendation.
    recommendations: list[str] = []
    if mapped_type == "existing" and TOP_POSITION < avg_position < STRIKING_DISTANCE_MAX:
        recommendations.append(f'Update page for "{label}" with FAQs and subtopics.')
    if mapped_type == "new" and avg_position > STRIKING_DISTANCE_MAX:
        recommendations.append(f'Create a new page targeting "{label}".')
    if avg_ctr < LOW_CTR and avg_position <= TOP_POSITION:
        recommendations.append(f'Improve meta title for "{label}" to boost CTR.')
    recommendations.append("Add internal links from related pages.")
    return recommendations


def score_cluster(
    sum_impressions: float,
    avg_ctr: float,
    avg_position: float,
    mapped_type: str,
    label: str,
) -> ClusterScore:
    return ClusterScore(
        priority=priority_score(
            sum_impressions,
            avg_ctr,
            avg_position,
            new_page=mapped_type == "new",
        ),
        recommendations=recommendation_messages(mapped_type, avg_position, avg_ctr, label),
    )
