"""Unit tests for parsing upstream response payloads."""

import pytest

from keyword_research_mcp.core.normalization import (
    SearchRow,
    parse_search_analytics_rows,
    parse_suggest_payload,
    to_float,
    to_int,
)


class TestCoercion:
    def test_to_float(self):
        assert to_float("1.5") == 1.5
        assert to_float(None) == 0.0
        assert to_float("n/a", default=-1.0) == -1.0

    def test_to_int(self):
        assert to_int("3.9") == 3
        assert to_int(object(), default=4) == 4


class TestParseSearchAnalyticsRows:
    def test_maps_keys_and_metrics(self):
        rows = parse_search_analytics_rows(
            [
                {
                    "keys": ["solar panels", "https://example.com/solar"],
                    "clicks": 12,
                    "impressions": 340,
                    "ctr": 0.035,
                    "position": 7.4,
                }
            ]
        )
        assert rows == [
            SearchRow(
                query="solar panels",
                page="https://example.com/solar",
                clicks=12.0,
                impressions=340.0,
                ctr=0.035,
                position=7.4,
            )
        ]

    def test_missing_metrics_default_to_zero(self):
        (row,) = parse_search_analytics_rows([{"keys": ["roof tiles", "/roof"]}])
        assert (row.clicks, row.impressions, row.ctr, row.position) == (0.0, 0.0, 0.0, 0.0)

    def test_rows_without_query_are_dropped(self):
        assert parse_search_analytics_rows([{"keys": []}, {"keys": ["", "/a"]}, {}]) == []

    def test_query_only_dimension(self):
        (row,) = parse_search_analytics_rows([{"keys": ["roof tiles"]}], dimensions=["query"])
        assert row.page == ""

    def test_row_serialization_rounds_metrics(self):
        row = SearchRow("q", "/p", 1.234, 10.0, 0.123456, 3.333)
        assert row.to_dict() == {
            "query": "q",
            "page": "/p",
            "clicks": 1.23,
            "impressions": 10.0,
            "ctr": 0.1235,
            "position": 3.33,
        }


class TestParseSuggestPayload:
    def test_returns_string_suggestions(self):
        payload = ["toroidal transformer", ["toroidal transformer winding", 42, "toroidal transformer core"]]
        assert parse_suggest_payload(payload) == [
            "toroidal transformer winding",
            "toroidal transformer core",
        ]

    @pytest.mark.parametrize("payload", [None, {}, ["only query"], ["q", "not a list"]])
    def test_rejects_unexpected_shapes(self, payload):
        with pytest.raises(ValueError):
            parse_suggest_payload(payload)
