"""Unit tests for environment settings and time-range resolution."""

from datetime import date

import pytest

from keyword_research_mcp.config import (
    MAX_KEYWORDS_CAP,
    _parse_bool,
    _parse_int,
    load_settings,
    resolve_time_range,
)

TODAY = date(2024, 3, 31)


class TestParsers:
    @pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
    def test_truthy_values(self, raw):
        assert _parse_bool(raw, False) is True

    def test_falsy_and_missing_values(self):
        assert _parse_bool("off", True) is False
        assert _parse_bool(None, True) is True

    def test_int_falls_back_on_garbage(self):
        assert _parse_int("42", 0) == 42
        assert _parse_int("forty-two", 7) == 7
        assert _parse_int(None, 7) == 7


class TestLoadSettings:
    @pytest.fixture(autouse=True)
    def _fresh_settings(self):
        load_settings.cache_clear()
        yield
        load_settings.cache_clear()

    def test_defaults(self, monkeypatch):
        for name in [
            "ENABLE_GSC",
            "ENABLE_AUTOCOMPLETE",
            "DEFAULT_TIME_RANGE",
            "DEFAULT_GEO",
            "DEFAULT_MAX_KEYWORDS",
            "AUTOCOMPLETE_DEPTH",
            "LOG_LEVEL",
        ]:
            monkeypatch.delenv(name, raising=False)

        settings = load_settings()

        assert settings.enable_gsc is True
        assert settings.enable_autocomplete is True
        assert settings.default_time_range == "last_90_days"
        assert settings.default_geo == "US"
        assert settings.default_max_keywords == 2000
        assert settings.autocomplete_depth == 2
        assert settings.log_level == "INFO"

    def test_max_keywords_is_capped(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_MAX_KEYWORDS", "999999")
        assert load_settings().default_max_keywords == MAX_KEYWORDS_CAP

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("ENABLE_AUTOCOMPLETE", "false")
        monkeypatch.setenv("DEFAULT_GEO", "GB")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        settings = load_settings()

        assert settings.enable_autocomplete is False
        assert settings.default_geo == "GB"
        assert settings.log_level == "DEBUG"


class TestResolveTimeRange:
    @pytest.mark.parametrize(
        "token,expected",
        [
            ("last_28_days", ("2024-03-04", "2024-03-31")),
            ("last_90_days", ("2024-01-02", "2024-03-31")),
            ("last_7_days", ("2024-03-25", "2024-03-31")),
            ("last_0_days", ("2024-03-31", "2024-03-31")),
            ("last_1_months", ("2024-02-29", "2024-03-31")),
            ("last_12_months", ("2023-03-31", "2024-03-31")),
            ("custom:2024-01-01:2024-01-31", ("2024-01-01", "2024-01-31")),
            ("yesterday-ish", ("2024-01-02", "2024-03-31")),
            (None, ("2024-01-02", "2024-03-31")),
        ],
    )
    def test_tokens(self, token, expected):
        assert resolve_time_range(token, today=TODAY) == expected

    def test_custom_range_must_be_ordered(self):
        with pytest.raises(ValueError):
            resolve_time_range("custom:2024-02-01:2024-01-01", today=TODAY)
