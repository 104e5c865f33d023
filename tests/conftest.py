"""
Shared fixtures for the keyword-research-mcp test suite.

Collaborator doubles stand in for Search Console and Google Autocomplete so
the clustering pipeline runs without network access.
"""

from typing import Callable, List, Optional

import pytest

from keyword_research_mcp.config import Settings
from keyword_research_mcp.core.normalization import SearchRow
from keyword_research_mcp.errors import UpstreamError


class FakeAnalytics:
    """Search Console double that records calls and returns canned rows."""

    def __init__(
        self, rows: Optional[List[SearchRow]] = None, error: Optional[Exception] = None
    ):
        self.rows = rows or []
        self.error = error
        self.calls = []

    def fetch_rows(self, site_url: str, time_range: str, row_limit: int) -> List[SearchRow]:
        self.calls.append((site_url, time_range, row_limit))
        if self.error is not None:
            raise self.error
        return list(self.rows)


class FakeSuggestions:
    """Autocomplete double with an async ``expand``."""

    def __init__(
        self, terms: Optional[List[str]] = None, error: Optional[Exception] = None
    ):
        self.terms = terms or []
        self.error = error
        self.calls = []

    async def expand(self, seed: str, depth: int = 1) -> List[str]:
        self.calls.append((seed, depth))
        if self.error is not None:
            raise self.error
        return list(self.terms)


@pytest.fixture
def make_row() -> Callable[..., SearchRow]:
    def _make_row(
        query: str,
        page: str = "",
        clicks: float = 0.0,
        impressions: float = 0.0,
        ctr: float = 0.0,
        position: float = 0.0,
    ) -> SearchRow:
        return SearchRow(
            query=query,
            page=page,
            clicks=clicks,
            impressions=impressions,
            ctr=ctr,
            position=position,
        )

    return _make_row


@pytest.fixture
def fake_analytics() -> Callable[..., FakeAnalytics]:
    return FakeAnalytics


@pytest.fixture
def fake_suggestions() -> Callable[..., FakeSuggestions]:
    return FakeSuggestions


@pytest.fixture
def upstream_error() -> UpstreamError:
    return UpstreamError("google-autocomplete", 503, "Service unavailable")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        enable_gsc=True,
        enable_autocomplete=True,
        require_explicit_gsc_site_url=True,
        default_gsc_site_url=None,
        default_time_range="last_90_days",
        default_geo="US",
        default_max_keywords=2000,
        autocomplete_depth=2,
        autocomplete_branch_factor=5,
        autocomplete_timeout_seconds=10.0,
        autocomplete_language="en",
        log_level="INFO",
    )
