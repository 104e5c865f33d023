from __future__ import annotations

from collections import deque

import httpx
from loguru import logger

from keyword_research_mcp.core.normalization import parse_suggest_payload
from keyword_research_mcp.errors import UpstreamError

SERVICE_NAME = "google-autocomplete"
SUGGEST_URL = "https://suggestqueries.google.com/complete/search"
DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/118.0 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}


def build_http_client(timeout: float = 10.0) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=timeout, headers=DEFAULT_HEADERS)


class AutocompleteClient:
    """Google Autocomplete suggestions over a caller-owned ``httpx.AsyncClient``."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        language: str = "en",
        geo: str | None = None,
        branch_factor: int = 5,
    ) -> None:
        self._client = client
        self._language = language
        self._geo = geo
        self._branch_factor = max(1, branch_factor)

    async def suggestions(self, query: str, *, geo: str | None = None) -> list[str]:
        params = {"client": "firefox", "q": query, "hl": self._language}
        country = geo or self._geo
        if country:
            params["gl"] = country.upper()

        try:
            response = await self._client.get(SUGGEST_URL, params=params)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeError) as exc:
            raise UpstreamError(SERVICE_NAME, 0, f"Autocomplete request failed: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise UpstreamError(
                SERVICE_NAME,
                response.status_code,
                "Failed to fetch autocomplete suggestions.",
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(
                SERVICE_NAME,
                response.status_code,
                "Autocomplete response was not valid JSON.",
            ) from exc

        try:
            return parse_suggest_payload(payload)
        except ValueError as exc:
            raise UpstreamError(SERVICE_NAME, response.status_code, str(exc)) from exc

    async def expand(self, seed: str, depth: int = 1) -> list[str]:
        """Breadth-first expansion of ``seed`` through its suggestions.

        Each level re-queries only the first ``branch_factor`` suggestions of
        a term. Seeds are queried at most once and collected suggestions are
        returned once each, in discovery order.
        """
        max_depth = max(1, depth)
        visited: set[str] = set()
        collected: dict[str, None] = {}
        queue: deque[tuple[str, int]] = deque([(seed, 0)])

        while queue:
            term, level = queue.popleft()
            if level >= max_depth or term in visited:
                continue
            visited.add(term)

            suggestions = await self.suggestions(term)
            for suggestion in suggestions:
                collected.setdefault(suggestion, None)

            next_level = level + 1
            if next_level >= max_depth:
                continue
            for next_seed in suggestions[: self._branch_factor]:
                if next_seed not in visited:
                    queue.append((next_seed, next_level))

        logger.debug("Autocomplete expansion of {!r} collected {} terms", seed, len(collected))
        return list(collected)
