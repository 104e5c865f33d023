"""Unit tests for the Search Console connector."""

from unittest.mock import MagicMock, patch

import httplib2
import pytest
from googleapiclient.errors import HttpError

from keyword_research_mcp.connectors.gsc import GSCConnector
from keyword_research_mcp.core.normalization import SearchRow
from keyword_research_mcp.errors import UpstreamError


def http_error(status: int, message: str) -> HttpError:
    response = httplib2.Response({"status": status})
    content = ('{"error": {"message": "%s"}}' % message).encode()
    return HttpError(response, content)


@pytest.fixture
def service():
    return MagicMock()


class TestSearchAnalytics:
    def test_builds_query_body(self, service):
        query = service.searchanalytics.return_value.query
        query.return_value.execute.return_value = {"rows": []}

        GSCConnector(service=service).search_analytics(
            "https://example.com/",
            "2024-01-01",
            "2024-01-31",
            dimensions=["query", "page"],
            row_limit=100000,
        )

        kwargs = query.call_args.kwargs
        assert kwargs["siteUrl"] == "https://example.com/"
        assert kwargs["body"] == {
            "startDate": "2024-01-01",
            "endDate": "2024-01-31",
            "rowLimit": 25000,
            "startRow": 0,
            "type": "web",
            "dimensions": ["query", "page"],
        }

    def test_http_errors_become_upstream_errors(self, service):
        service.searchanalytics.return_value.query.return_value.execute.side_effect = http_error(
            403, "User does not have sufficient permission"
        )

        with pytest.raises(UpstreamError) as excinfo:
            GSCConnector(service=service).search_analytics(
                "https://example.com/", "2024-01-01", "2024-01-31"
            )

        assert excinfo.value.service == "search-console"
        assert excinfo.value.status == 403


class TestFetchRows:
    def test_resolves_range_and_parses_rows(self, service):
        query = service.searchanalytics.return_value.query
        query.return_value.execute.return_value = {
            "rows": [
                {
                    "keys": ["solar panels", "https://example.com/solar"],
                    "clicks": 3,
                    "impressions": 90,
                    "ctr": 0.033,
                    "position": 5.1,
                },
                {"keys": ["", "https://example.com/"]},
            ]
        }

        rows = GSCConnector(service=service).fetch_rows(
            "https://example.com/",
            "custom:2024-02-01:2024-02-29",
            400,
        )

        assert rows == [
            SearchRow("solar panels", "https://example.com/solar", 3.0, 90.0, 0.033, 5.1)
        ]
        body = query.call_args.kwargs["body"]
        assert body["startDate"] == "2024-02-01"
        assert body["endDate"] == "2024-02-29"
        assert body["rowLimit"] == 400
        assert body["dimensions"] == ["query", "page"]

    def test_filters_become_a_filter_group(self, service):
        query = service.searchanalytics.return_value.query
        query.return_value.execute.return_value = {}
        filters = [{"dimension": "query", "operator": "contains", "expression": "solar"}]

        assert GSCConnector(service=service).fetch_rows(
            "https://example.com/", "last_28_days", 10, filters=filters
        ) == []
        assert query.call_args.kwargs["body"]["dimensionFilterGroups"] == [{"filters": filters}]

    def test_requires_site_url(self, service):
        with pytest.raises(ValueError):
            GSCConnector(service=service).fetch_rows("", "last_28_days", 10)


class TestConstruction:
    def test_builds_service_from_credentials(self):
        credentials = MagicMock()
        with patch("keyword_research_mcp.connectors.gsc.build") as build:
            GSCConnector(credentials)

        build.assert_called_once_with(
            "searchconsole", "v1", credentials=credentials, cache_discovery=False
        )

    def test_list_sites(self, service):
        service.sites.return_value.list.return_value.execute.return_value = {
            "siteEntry": [{"siteUrl": "sc-domain:example.com"}]
        }
        assert GSCConnector(service=service).list_sites() == [{"siteUrl": "sc-domain:example.com"}]
