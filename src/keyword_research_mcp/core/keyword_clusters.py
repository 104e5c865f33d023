from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol, Sequence

from loguru import logger

from keyword_research_mcp.config import GSC_ROW_LIMIT_CAP, MAX_KEYWORDS_CAP
from keyword_research_mcp.core.analysis import KeywordClusterRecommendation, rank_clusters
from keyword_research_mcp.core.clustering import (
    KeywordMap,
    build_clusters,
    merge_expansion_terms,
    merge_search_rows,
    truncate_keywords,
)
from keyword_research_mcp.core.normalization import SearchRow
from keyword_research_mcp.errors import UpstreamError


class AnalyticsSource(Protocol):
    def fetch_rows(self, site_url: str, time_range: str, row_limit: int) -> list[SearchRow]:
        ...


class SuggestionSource(Protocol):
    async def expand(self, seed: str, depth: int = ...) -> list[str]:
        ...


@dataclass(frozen=True)
class KeywordClustersRequest:
    site_url: str
    query: str = ""
    time_range: str = "last_90_days"
    include_autocomplete: bool = True
    geo: str = "US"
    max_keywords: int = 2000
    expansion_depth: int = 2

    @property
    def row_limit(self) -> int:
        return min(self.max_keywords * 4, GSC_ROW_LIMIT_CAP)

    @property
    def wants_expansion(self) -> bool:
        return self.include_autocomplete and bool(self.query)


@dataclass(frozen=True)
class KeywordClustersResult:
    query: str
    site_url: str
    geo: str
    time_range: str
    include_autocomplete: bool
    generated_at: str
    clusters: list[KeywordClusterRecommendation]

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "site_url": self.site_url,
            "geo": self.geo,
            "time_range": self.time_range,
            "include_autocomplete": self.include_autocomplete,
            "generated_at": self.generated_at,
            "clusters": [cluster.to_dict() for cluster in self.clusters],
        }


def build_keyword_map(
    rows: Sequence[SearchRow],
    expansion_terms: Sequence[str],
    max_keywords: int,
) -> KeywordMap:
    # Performance keywords go in first so truncation keeps them.
    keyword_map: KeywordMap = {}
    merge_search_rows(keyword_map, rows)
    merge_expansion_terms(keyword_map, expansion_terms)
    return truncate_keywords(keyword_map, min(max_keywords, MAX_KEYWORDS_CAP))


def cluster_keywords(keyword_map: KeywordMap) -> list[KeywordClusterRecommendation]:
    return rank_clusters(build_clusters(keyword_map), keyword_map)


async def _expansion_terms(
    suggestions: SuggestionSource | None,
    request: KeywordClustersRequest,
) -> list[str]:
    if suggestions is None or not request.wants_expansion:
        return []
    try:
        return await suggestions.expand(request.query, request.expansion_depth)
    except UpstreamError as exc:
        logger.warning(
            "Autocomplete expansion for {!r} failed, clustering without it: {}",
            request.query,
            exc,
        )
        return []


async def get_keyword_clusters(
    request: KeywordClustersRequest,
    analytics: AnalyticsSource,
    suggestions: SuggestionSource | None = None,
) -> KeywordClustersResult:
    """Cluster a site's search queries, optionally widened with autocomplete terms.

    Search Console failures propagate; autocomplete failures only drop the
    expansion terms.
    """
    logger.info(
        "Clustering keywords for {} (query={!r}, time_range={}, max_keywords={})",
        request.site_url,
        request.query,
        request.time_range,
        request.max_keywords,
    )

    expansion = asyncio.create_task(_expansion_terms(suggestions, request))
    try:
        rows = await asyncio.to_thread(
            analytics.fetch_rows,
            request.site_url,
            request.time_range,
            request.row_limit,
        )
    except BaseException:
        expansion.cancel()
        await asyncio.gather(expansion, return_exceptions=True)
        raise
    expansion_terms = await expansion

    keyword_map = build_keyword_map(rows, expansion_terms, request.max_keywords)
    clusters = cluster_keywords(keyword_map)

    logger.info(
        "Built {} clusters from {} keywords ({} rows, {} expansion terms)",
        len(clusters),
        len(keyword_map),
        len(rows),
        len(expansion_terms),
    )

    return KeywordClustersResult(
        query=request.query,
        site_url=request.site_url,
        geo=request.geo,
        time_range=request.time_range,
        include_autocomplete=request.include_autocomplete,
        generated_at=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        clusters=clusters,
    )
