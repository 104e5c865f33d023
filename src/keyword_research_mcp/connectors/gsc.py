from __future__ import annotations

from typing import Any, Sequence

from google.auth.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from loguru import logger

from keyword_research_mcp.auth import get_google_credentials
from keyword_research_mcp.config import GSC_ROW_LIMIT_CAP, resolve_time_range
from keyword_research_mcp.core.normalization import SearchRow, parse_search_analytics_rows
from keyword_research_mcp.errors import UpstreamError

SERVICE_NAME = "search-console"


def _upstream_error(exc: HttpError) -> UpstreamError:
    status = getattr(exc.resp, "status", 0) or 0
    reason = getattr(exc, "reason", None) or str(exc)
    return UpstreamError(
        SERVICE_NAME,
        int(status),
        f"Search Console request failed: {reason}",
    )


class GSCConnector:
    SCOPES = ("https://www.googleapis.com/auth/webmasters.readonly",)

    def __init__(self, credentials: Credentials | None = None, *, service: Any = None) -> None:
        if service is None:
            credentials = credentials or get_google_credentials(self.SCOPES)
            service = build(
                "searchconsole",
                "v1",
                credentials=credentials,
                cache_discovery=False,
            )
        self._service = service

    def list_sites(self) -> list[dict[str, Any]]:
        try:
            response = self._service.sites().list().execute()
        except HttpError as exc:
            raise _upstream_error(exc) from exc
        return response.get("siteEntry", [])

    def search_analytics(
        self,
        site_url: str,
        start_date: str,
        end_date: str,
        *,
        dimensions: Sequence[str] | None = None,
        row_limit: int = GSC_ROW_LIMIT_CAP,
        start_row: int = 0,
        search_type: str = "web",
        dimension_filter_groups: Sequence[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "startDate": start_date,
            "endDate": end_date,
            "rowLimit": max(1, min(row_limit, GSC_ROW_LIMIT_CAP)),
            "startRow": start_row,
            "type": search_type,
        }

        if dimensions:
            body["dimensions"] = list(dimensions)
        if dimension_filter_groups:
            body["dimensionFilterGroups"] = list(dimension_filter_groups)

        logger.debug(
            "GSC searchanalytics.query site={} range={}..{} rows={}",
            site_url,
            start_date,
            end_date,
            body["rowLimit"],
        )
        try:
            return (
                self._service.searchanalytics()
                .query(siteUrl=site_url, body=body)
                .execute()
            )
        except HttpError as exc:
            raise _upstream_error(exc) from exc

    def fetch_rows(
        self,
        site_url: str,
        time_range: str,
        row_limit: int,
        *,
        dimensions: Sequence[str] = ("query", "page"),
        filters: Sequence[dict[str, str]] | None = None,
    ) -> list[SearchRow]:
        """Return query/page rows for a relative or custom time range."""
        if not site_url:
            raise ValueError("site_url is required to query Search Console.")

        start_date, end_date = resolve_time_range(time_range)
        filter_groups = [{"filters": list(filters)}] if filters else None

        response = self.search_analytics(
            site_url,
            start_date,
            end_date,
            dimensions=dimensions,
            row_limit=row_limit,
            dimension_filter_groups=filter_groups,
        )
        rows = parse_search_analytics_rows(response.get("rows", []), dimensions=dimensions)
        logger.debug("GSC returned {} usable rows for {}", len(rows), site_url)
        return rows
