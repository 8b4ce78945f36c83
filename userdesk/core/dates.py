"""Date normalization helpers shared by the API client and forms."""

from __future__ import annotations

from datetime import date
from datetime import datetime
from datetime import timezone
import re
from typing import Any

_API_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def format_date_for_api(value: Any) -> str | None:
    """Normalize a date value to `YYYY-MM-DD`, or `None` when it is absent or unrecognized."""
    if value is None or value == "":
        return None

    if isinstance(value, str):
        if _API_DATE_PATTERN.fullmatch(value):
            return value
        return None

    if isinstance(value, datetime):
        return _as_utc(value).date().isoformat()

    if isinstance(value, date):
        return value.isoformat()

    return None


def parse_api_date(value: Any) -> date | None:
    """Read a server date or timestamp into a calendar date.

    Accepts `date`/`datetime` objects, `YYYY-MM-DD` strings and ISO-8601
    timestamps (a trailing `Z` is read as UTC). Timestamps are converted to
    UTC before the date is taken. Empty or unparseable input yields `None`.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return _as_utc(value).date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    normalized = value.strip()
    if _API_DATE_PATTERN.fullmatch(normalized):
        try:
            return date.fromisoformat(normalized)
        except ValueError:
            return None

    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    return _as_utc(parsed).date()


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
