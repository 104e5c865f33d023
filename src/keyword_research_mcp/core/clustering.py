from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Sequence

from keyword_research_mcp.core.normalization import SearchRow
from keyword_research_mcp.core.scoring import average
from keyword_research_mcp.core.similarity import is_linked, similarity
from keyword_research_mcp.core.text import normalize, tokenize
from keyword_research_mcp.core.union_find import DisjointSet


@dataclass
class KeywordMetrics:
    keyword: str
    tokens: list[str]
    pages: list[str] = field(default_factory=list)
    clicks: float = 0.0
    impressions: float = 0.0
    ctrs: list[float] = field(default_factory=list)
    positions: list[float] = field(default_factory=list)

    @classmethod
    def empty(cls, keyword: str) -> KeywordMetrics:
        return cls(keyword=keyword, tokens=tokenize(keyword))

    @property
    def avg_ctr(self) -> float:
        return average(self.ctrs)

    @property
    def avg_position(self) -> float:
        return average(self.positions)

    def add_row(self, row: SearchRow) -> None:
        self.clicks += row.clicks
        self.impressions += row.impressions
        self.ctrs.append(row.ctr)
        self.positions.append(row.position)
        if row.page and row.page not in self.pages:
            self.pages.append(row.page)


KeywordMap = dict[str, KeywordMetrics]


def merge_search_rows(keyword_map: KeywordMap, rows: Iterable[SearchRow]) -> int:
    """Accumulate rows into ``keyword_map`` by normalized query.

    Returns the number of keywords created.
    """
    created = 0
    for row in rows:
        keyword = normalize(row.query)
        if not keyword:
            continue
        metrics = keyword_map.get(keyword)
        if metrics is None:
            metrics = KeywordMetrics.empty(keyword)
            keyword_map[keyword] = metrics
            created += 1
        metrics.add_row(row)
    return created


def merge_expansion_terms(keyword_map: KeywordMap, terms: Iterable[str]) -> int:
    """Add unseen expansion terms as zero-metric keywords; existing ones are untouched."""
    created = 0
    for term in terms:
        keyword = normalize(term)
        if not keyword or keyword in keyword_map:
            continue
        keyword_map[keyword] = KeywordMetrics.empty(keyword)
        created += 1
    return created


def truncate_keywords(keyword_map: KeywordMap, max_keywords: int) -> KeywordMap:
    keywords = list(keyword_map)[: max(0, max_keywords)]
    return {keyword: keyword_map[keyword] for keyword in keywords}


def find_links(keyword_map: KeywordMap) -> list[tuple[str, str]]:
    keywords = list(keyword_map)
    token_sets = {keyword: set(keyword_map[keyword].tokens) for keyword in keywords}
    page_sets = {keyword: set(keyword_map[keyword].pages) for keyword in keywords}

    links: list[tuple[str, str]] = []
    for i, a in enumerate(keywords):
        for b in keywords[i + 1 :]:
            score = similarity(
                a,
                b,
                token_sets[a],
                token_sets[b],
                page_sets[a],
                page_sets[b],
            )
            if is_linked(score):
                links.append((a, b))
    return links


def build_clusters(
    keyword_map: KeywordMap,
    links: Sequence[tuple[str, str]] | None = None,
) -> list[list[str]]:
    """Group keywords into connected components of the similarity graph."""
    if links is None:
        links = find_links(keyword_map)

    components = DisjointSet(keyword_map)
    for a, b in links:
        components.union(a, b)
    return components.groups()
