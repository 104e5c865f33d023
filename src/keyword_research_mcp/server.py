import asyncio
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

from dotenv import load_dotenv
from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from keyword_research_mcp.config import (
    GSC_ROW_LIMIT_CAP,
    MAX_KEYWORDS_CAP,
    Settings,
    load_settings,
    resolve_time_range,
)
from keyword_research_mcp.connectors.autocomplete import AutocompleteClient, build_http_client
from keyword_research_mcp.connectors.gsc import GSCConnector
from keyword_research_mcp.core.keyword_clusters import (
    KeywordClustersRequest,
    get_keyword_clusters as cluster_site_keywords,
)

load_dotenv()

MAX_QUERY_LENGTH = 512
MAX_AUTOCOMPLETE_QUERIES = 3

TOOLS = [
    "ping",
    "capabilities",
    "gsc_list_sites",
    "gsc_query_page_pairs",
    "get_autocomplete_suggestions",
    "expand_autocomplete",
    "get_keyword_clusters",
]


@dataclass
class AppContext:
    settings: Settings
    autocomplete: AutocompleteClient | None = None
    _gsc: GSCConnector | None = field(default=None, repr=False)

    def gsc(self) -> GSCConnector:
        if not self.settings.enable_gsc:
            raise RuntimeError("GSC connector is disabled. Set ENABLE_GSC=true.")
        if self._gsc is None:
            self._gsc = GSCConnector()
        return self._gsc

    def require_autocomplete(self) -> AutocompleteClient:
        if self.autocomplete is None:
            raise RuntimeError(
                "Autocomplete connector is disabled. Set ENABLE_AUTOCOMPLETE=true."
            )
        return self.autocomplete


def configure_logging(level: str) -> None:
    # stdout carries the MCP stdio transport.
    logger.remove()
    logger.add(sys.stderr, level=level)


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    settings = load_settings()
    if not settings.enable_autocomplete:
        yield AppContext(settings=settings)
        return

    async with build_http_client(settings.autocomplete_timeout_seconds) as http_client:
        yield AppContext(
            settings=settings,
            autocomplete=AutocompleteClient(
                http_client,
                language=settings.autocomplete_language,
                geo=settings.default_geo,
                branch_factor=settings.autocomplete_branch_factor,
            ),
        )


mcp = FastMCP("keyword-research-mcp", lifespan=app_lifespan)


def _app(ctx: Context) -> AppContext:
    return ctx.request_context.lifespan_context


def _validate_site_url(value: str) -> str:
    raw = value.strip()
    if not raw:
        raise ValueError("site_url cannot be empty.")

    if raw.startswith("sc-domain:"):
        domain = raw[len("sc-domain:") :].strip().strip(".")
        if not domain:
            raise ValueError("Invalid sc-domain site_url value.")
        return f"sc-domain:{domain}"

    parsed = urlparse(raw)
    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        raise ValueError(f"site_url must be a valid URL: {value!r}")
    return raw


def _resolve_site_url(site_url: str | None, settings: Settings) -> str:
    if site_url:
        return _validate_site_url(site_url)

    if settings.require_explicit_gsc_site_url:
        raise ValueError(
            "Missing site_url. This server requires explicit site_url in tool arguments."
        )

    if settings.default_gsc_site_url:
        return _validate_site_url(settings.default_gsc_site_url)

    raise ValueError("Missing site_url and DEFAULT_GSC_SITE_URL is not set.")


def _validate_query(value: str, name: str = "query") -> str:
    if not value:
        raise ValueError(f"{name} must not be empty.")
    if len(value) > MAX_QUERY_LENGTH:
        raise ValueError(f"{name} must be {MAX_QUERY_LENGTH} characters or fewer.")
    return value


def build_cluster_request(
    settings: Settings,
    *,
    site_url: str | None,
    query: str | None = None,
    time_range: str | None = None,
    include_autocomplete: bool | None = None,
    geo: str | None = None,
    max_keywords: int | None = None,
) -> KeywordClustersRequest:
    resolved_query = (query or "").strip()
    if len(resolved_query) > MAX_QUERY_LENGTH:
        raise ValueError(f"query must be {MAX_QUERY_LENGTH} characters or fewer.")

    resolved_max = max_keywords if max_keywords is not None else settings.default_max_keywords
    if not 1 <= resolved_max <= MAX_KEYWORDS_CAP:
        raise ValueError(f"max_keywords must be between 1 and {MAX_KEYWORDS_CAP}.")

    resolved_geo = geo or settings.default_geo
    if len(resolved_geo) > 32:
        raise ValueError("geo must be 32 characters or fewer.")

    resolved_range = time_range or settings.default_time_range
    # Rejects malformed custom ranges before any upstream call.
    resolve_time_range(resolved_range)

    return KeywordClustersRequest(
        site_url=_resolve_site_url(site_url, settings),
        query=resolved_query,
        time_range=resolved_range,
        include_autocomplete=True if include_autocomplete is None else include_autocomplete,
        geo=resolved_geo,
        max_keywords=resolved_max,
        expansion_depth=settings.autocomplete_depth,
    )


@mcp.tool()
def ping() -> dict[str, Any]:
    """Health check to confirm the MCP server is reachable."""
    return {"status": "ok", "server": "keyword-research-mcp"}


@mcp.tool()
def capabilities(ctx: Context) -> dict[str, Any]:
    """Show enabled connectors, defaults, and clustering limits."""
    settings = _app(ctx).settings
    return {
        "connectors": {
            "gsc_enabled": settings.enable_gsc,
            "autocomplete_enabled": settings.enable_autocomplete,
        },
        "defaults": {
            "gsc_site_url": settings.default_gsc_site_url,
            "require_explicit_gsc_site_url": settings.require_explicit_gsc_site_url,
            "time_range": settings.default_time_range,
            "geo": settings.default_geo,
            "max_keywords": settings.default_max_keywords,
        },
        "limits": {
            "max_keywords": MAX_KEYWORDS_CAP,
            "gsc_row_limit": GSC_ROW_LIMIT_CAP,
            "autocomplete_depth": settings.autocomplete_depth,
            "autocomplete_branch_factor": settings.autocomplete_branch_factor,
        },
        "tools": TOOLS,
    }


@mcp.tool()
def gsc_list_sites(ctx: Context) -> dict[str, Any]:
    """List Search Console properties available to the authenticated account."""
    sites = _app(ctx).gsc().list_sites()
    return {"count": len(sites), "sites": sites}


@mcp.tool()
def gsc_query_page_pairs(
    ctx: Context,
    site_url: str | None = None,
    time_range: str | None = None,
    row_limit: int = 5000,
    top_n: int = 100,
) -> dict[str, Any]:
    """Return query+page combinations from GSC sorted by impressions."""
    app = _app(ctx)
    resolved_site = _resolve_site_url(site_url, app.settings)
    resolved_range = time_range or app.settings.default_time_range
    start_date, end_date = resolve_time_range(resolved_range)

    rows = app.gsc().fetch_rows(resolved_site, resolved_range, row_limit)
    ranked = sorted(rows, key=lambda r: (r.impressions, r.clicks), reverse=True)

    return {
        "site_url": resolved_site,
        "start_date": start_date,
        "end_date": end_date,
        "total_pairs": len(ranked),
        "rows": [row.to_dict() for row in ranked[: max(1, top_n)]],
    }


@mcp.tool()
async def get_autocomplete_suggestions(
    ctx: Context,
    query: str | None = None,
    queries: list[str] | None = None,
    geo: str | None = None,
) -> dict[str, Any]:
    """Fetch Google Autocomplete suggestions for up to three queries."""
    resolved = list(queries or []) or ([query] if query else [])
    if not resolved:
        raise ValueError('Provide either "query" or "queries" with at least one entry.')
    if len(resolved) > MAX_AUTOCOMPLETE_QUERIES:
        raise ValueError(f"You can supply up to {MAX_AUTOCOMPLETE_QUERIES} queries.")

    client = _app(ctx).require_autocomplete()
    results = []
    for item in resolved:
        suggestions = await client.suggestions(_validate_query(item), geo=geo)
        results.append({"query": item, "suggestions": suggestions})

    return {"count": len(results), "results": results}


@mcp.tool()
async def expand_autocomplete(
    ctx: Context,
    query: str,
    depth: int | None = None,
) -> dict[str, Any]:
    """Expand a seed query breadth-first through Google Autocomplete."""
    app = _app(ctx)
    client = app.require_autocomplete()
    resolved_depth = depth if depth is not None else app.settings.autocomplete_depth
    if resolved_depth < 1:
        raise ValueError("depth must be at least 1.")

    terms = await client.expand(_validate_query(query), resolved_depth)
    return {"query": query, "depth": resolved_depth, "count": len(terms), "terms": terms}


@mcp.tool()
async def get_keyword_clusters(
    ctx: Context,
    site_url: str | None = None,
    query: str | None = None,
    time_range: str | None = None,
    include_autocomplete: bool | None = None,
    geo: str | None = None,
    max_keywords: int | None = None,
) -> dict[str, Any]:
    """Cluster Search Console queries (plus autocomplete terms) into page-mapped topics."""
    app = _app(ctx)
    request = build_cluster_request(
        app.settings,
        site_url=site_url,
        query=query,
        time_range=time_range,
        include_autocomplete=include_autocomplete,
        geo=geo,
        max_keywords=max_keywords,
    )
    # Building the connector reads credentials and the discovery document.
    gsc = await asyncio.to_thread(app.gsc)
    result = await cluster_site_keywords(request, gsc, app.autocomplete)
    return result.to_dict()


def main() -> None:
    configure_logging(load_settings().log_level)
    mcp.run()


if __name__ == "__main__":
    main()
