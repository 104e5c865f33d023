from __future__ import annotations

import calendar
import os
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from functools import lru_cache

MAX_KEYWORDS_CAP = 5000
GSC_ROW_LIMIT_CAP = 25000
DEFAULT_TIME_RANGE = "last_90_days"

_LAST_DAYS = re.compile(r"^last_(\d+)_days$", re.IGNORECASE)
_LAST_MONTHS = re.compile(r"^last_(\d+)_months$", re.IGNORECASE)
_CUSTOM = re.compile(r"^custom:(\d{4}-\d{2}-\d{2}):(\d{4}-\d{2}-\d{2})$", re.IGNORECASE)


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def parse_date(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


@dataclass(frozen=True)
class Settings:
    enable_gsc: bool
    enable_autocomplete: bool
    require_explicit_gsc_site_url: bool
    default_gsc_site_url: str | None
    default_time_range: str
    default_geo: str
    default_max_keywords: int

    autocomplete_depth: int
    autocomplete_branch_factor: int
    autocomplete_timeout_seconds: float
    autocomplete_language: str

    log_level: str


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    return Settings(
        enable_gsc=_parse_bool(os.getenv("ENABLE_GSC"), True),
        enable_autocomplete=_parse_bool(os.getenv("ENABLE_AUTOCOMPLETE"), True),
        require_explicit_gsc_site_url=_parse_bool(
            os.getenv("REQUIRE_EXPLICIT_GSC_SITE_URL"),
            True,
        ),
        default_gsc_site_url=os.getenv("DEFAULT_GSC_SITE_URL") or None,
        default_time_range=os.getenv("DEFAULT_TIME_RANGE") or DEFAULT_TIME_RANGE,
        default_geo=os.getenv("DEFAULT_GEO") or "US",
        default_max_keywords=min(
            MAX_KEYWORDS_CAP,
            max(1, _parse_int(os.getenv("DEFAULT_MAX_KEYWORDS"), 2000)),
        ),
        autocomplete_depth=max(1, _parse_int(os.getenv("AUTOCOMPLETE_DEPTH"), 2)),
        autocomplete_branch_factor=max(
            1, _parse_int(os.getenv("AUTOCOMPLETE_BRANCH_FACTOR"), 5)
        ),
        autocomplete_timeout_seconds=_parse_float(
            os.getenv("AUTOCOMPLETE_TIMEOUT_SECONDS"), 10.0
        ),
        autocomplete_language=os.getenv("AUTOCOMPLETE_LANGUAGE") or "en",
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )


def _minus_months(value: date, months: int) -> date:
    total = value.year * 12 + (value.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def resolve_time_range(time_range: str | None, today: date | None = None) -> tuple[str, str]:
    """Turn a relative time-range token into inclusive ISO start/end dates.

    Supported tokens: ``last_N_days``, ``last_N_months`` and
    ``custom:YYYY-MM-DD:YYYY-MM-DD``. Unknown tokens fall back to the last
    90 days. The window ends today (UTC).
    """
    end = today or datetime.now(timezone.utc).date()
    token = (time_range or DEFAULT_TIME_RANGE).strip()

    match = _LAST_DAYS.match(token)
    if match:
        days = max(1, int(match.group(1)))
        return (end - timedelta(days=days - 1)).isoformat(), end.isoformat()

    match = _LAST_MONTHS.match(token)
    if match:
        months = max(1, int(match.group(1)))
        return _minus_months(end, months).isoformat(), end.isoformat()

    match = _CUSTOM.match(token)
    if match:
        start_date, end_date = match.group(1), match.group(2)
        if parse_date(start_date) > parse_date(end_date):
            raise ValueError(f"Custom time range starts after it ends: {time_range!r}")
        return start_date, end_date

    return (end - timedelta(days=89)).isoformat(), end.isoformat()
