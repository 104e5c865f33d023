from __future__ import annotations

from typing import Any


class KeywordResearchError(Exception):
    """Base class for errors raised by keyword-research-mcp."""


class UpstreamError(KeywordResearchError):
    """An external data source failed or returned an unusable payload."""

    def __init__(
        self,
        service: str,
        status: int,
        message: str | None = None,
        details: Any = None,
    ) -> None:
        self.service = service
        self.status = status
        self.details = details
        super().__init__(message or f"{service} request failed with status {status}")
