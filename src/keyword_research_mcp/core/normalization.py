from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence


def to_float(value: Any, default: float = 0.0) -> float:
    try:
        if value is None:
            return default
        return float(value)
    except (TypeError, ValueError):
        return default


def to_int(value: Any, default: int = 0) -> int:
    try:
        if value is None:
            return default
        return int(float(value))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class SearchRow:
    """One Search Analytics row keyed by query and page."""

    query: str
    page: str
    clicks: float
    impressions: float
    ctr: float
    position: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "page": self.page,
            "clicks": round(self.clicks, 2),
            "impressions": round(self.impressions, 2),
            "ctr": round(self.ctr, 4),
            "position": round(self.position, 2),
        }


def parse_search_analytics_rows(
    rows: Sequence[Mapping[str, Any]],
    *,
    dimensions: Sequence[str] = ("query", "page"),
) -> list[SearchRow]:
    dimensions = list(dimensions)
    query_index = dimensions.index("query") if "query" in dimensions else 0
    page_index = dimensions.index("page") if "page" in dimensions else None

    parsed: list[SearchRow] = []
    for row in rows:
        keys = row.get("keys") or []
        if query_index >= len(keys):
            continue

        query = str(keys[query_index] or "")
        if not query:
            continue

        page = ""
        if page_index is not None and page_index < len(keys):
            page = str(keys[page_index] or "")

        parsed.append(
            SearchRow(
                query=query,
                page=page,
                clicks=to_float(row.get("clicks")),
                impressions=to_float(row.get("impressions")),
                ctr=to_float(row.get("ctr")),
                position=to_float(row.get("position")),
            )
        )

    return parsed


def parse_suggest_payload(payload: Any) -> list[str]:
    """Extract suggestions from an OpenSearch-style ``[query, [suggestions...]]`` body.

    Non-string entries are dropped. Raises ``ValueError`` for any other shape.
    """
    if not isinstance(payload, list) or len(payload) < 2 or not isinstance(payload[1], list):
        raise ValueError("Unexpected autocomplete payload format.")
    return [value for value in payload[1] if isinstance(value, str)]
