from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Sequence

from keyword_research_mcp.core.clustering import KeywordMap
from keyword_research_mcp.core.scoring import score_cluster, score_page_aggregate


@dataclass
class PageAggregate:
    impressions: float = 0.0
    clicks: float = 0.0
    positions: list[float] = field(default_factory=list)
    ctrs: list[float] = field(default_factory=list)

    @property
    def score(self) -> float:
        return score_page_aggregate(self.impressions, self.clicks, self.positions, self.ctrs)


@dataclass(frozen=True)
class MappedPage:
    type: str
    url: str | None = None
    suggested_slug: str | None = None

    @classmethod
    def existing(cls, url: str) -> MappedPage:
        return cls(type="existing", url=url)

    @classmethod
    def new(cls, suggested_slug: str) -> MappedPage:
        return cls(type="new", suggested_slug=suggested_slug)

    def to_dict(self) -> dict[str, Any]:
        if self.type == "existing":
            return {"type": "existing", "url": self.url}
        return {"type": "new", "suggested_slug": self.suggested_slug}


@dataclass(frozen=True)
class ClusterRollup:
    keywords: int
    sum_impressions: float
    sum_clicks: float
    avg_ctr: float
    avg_position: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "keywords": self.keywords,
            "sum_impressions": self.sum_impressions,
            "sum_clicks": self.sum_clicks,
            "avg_ctr": self.avg_ctr,
            "avg_position": self.avg_position,
        }


@dataclass(frozen=True)
class KeywordClusterRecommendation:
    label: str
    priority: int
    representative_keyword: str
    mapped_page: MappedPage
    rollup: ClusterRollup
    keywords: list[dict[str, Any]]
    recommendations: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "priority": self.priority,
            "representative_keyword": self.representative_keyword,
            "mapped_page": self.mapped_page.to_dict(),
            "rollup": self.rollup.to_dict(),
            "keywords": [dict(item) for item in self.keywords],
            "recommendations": list(self.recommendations),
        }


def most_common_bigram(keywords: Sequence[str], keyword_map: KeywordMap) -> str:
    counter: Counter[str] = Counter()
    for keyword in keywords:
        tokens = keyword_map[keyword].tokens
        for first, second in zip(tokens, tokens[1:]):
            counter[f"{first} {second}"] += 1

    # most_common keeps insertion order among equal counts.
    best = counter.most_common(1)
    return best[0][0] if best else keywords[0]


def suggested_slug(keyword: str) -> str:
    return "/" + "-".join(keyword.split(" ")[:3])


def map_cluster_page(keywords: Sequence[str], keyword_map: KeywordMap) -> MappedPage:
    aggregates: dict[str, PageAggregate] = {}
    for keyword in keywords:
        metrics = keyword_map[keyword]
        for page in metrics.pages:
            aggregate = aggregates.setdefault(page, PageAggregate())
            aggregate.impressions += metrics.impressions
            aggregate.clicks += metrics.clicks
            aggregate.positions.extend(metrics.positions)
            aggregate.ctrs.extend(metrics.ctrs)

    if not aggregates:
        return MappedPage.new(suggested_slug(keywords[0]))

    best_url = max(aggregates, key=lambda url: aggregates[url].score)
    return MappedPage.existing(best_url)


def summarize_cluster(
    keywords: Sequence[str],
    keyword_map: KeywordMap,
) -> KeywordClusterRecommendation:
    sum_impressions = 0.0
    sum_clicks = 0.0
    ctr_means: list[float] = []
    position_means: list[float] = []

    for keyword in keywords:
        metrics = keyword_map[keyword]
        sum_impressions += metrics.impressions
        sum_clicks += metrics.clicks
        if metrics.ctrs:
            ctr_means.append(metrics.avg_ctr)
        if metrics.positions:
            position_means.append(metrics.avg_position)

    # Average of per-keyword averages: every keyword weighs the same.
    avg_ctr = sum(ctr_means) / len(ctr_means) if ctr_means else 0.0
    avg_position = sum(position_means) / len(position_means) if position_means else 0.0

    mapped_page = map_cluster_page(keywords, keyword_map)
    label = most_common_bigram(keywords, keyword_map)
    representative = max(keywords, key=lambda keyword: keyword_map[keyword].impressions)
    score = score_cluster(sum_impressions, avg_ctr, avg_position, mapped_page.type, label)

    details = [
        {
            "keyword": keyword,
            "clicks": keyword_map[keyword].clicks,
            "impressions": keyword_map[keyword].impressions,
            "avg_ctr": keyword_map[keyword].avg_ctr,
            "avg_position": keyword_map[keyword].avg_position,
            "pages": list(keyword_map[keyword].pages),
        }
        for keyword in keywords
    ]

    return KeywordClusterRecommendation(
        label=label,
        priority=score.priority,
        representative_keyword=representative,
        mapped_page=mapped_page,
        rollup=ClusterRollup(
            keywords=len(keywords),
            sum_impressions=sum_impressions,
            sum_clicks=sum_clicks,
            avg_ctr=avg_ctr,
            avg_position=avg_position,
        ),
        keywords=details,
        recommendations=score.recommendations,
    )


def rank_clusters(
    clusters: Sequence[Sequence[str]],
    keyword_map: KeywordMap,
) -> list[KeywordClusterRecommendation]:
    results = [summarize_cluster(keywords, keyword_map) for keywords in clusters if keywords]
    results.sort(key=lambda item: item.priority, reverse=True)
    return results
