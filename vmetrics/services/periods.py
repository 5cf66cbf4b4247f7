"""VMetrics — Reporting Period Resolution."""

from datetime import date, datetime, timedelta, timezone
from typing import Optional

PERIODS = ("today", "yesterday", "7d", "this_month", "last_month", "max", "custom")


class InvalidPeriodError(ValueError):
    """Raised for malformed or inverted custom date bounds."""


def _parse_date(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError) as e:
        raise InvalidPeriodError(f"Invalid date '{value}', expected YYYY-MM-DD") from e


def _one_year_before(day: date) -> date:
    try:
        return day.replace(year=day.year - 1)
    except ValueError:
        # Feb 29
        return day.replace(year=day.year - 1, day=28)


def resolve_period(
    period: Optional[str],
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    today: Optional[date] = None,
) -> tuple[str, str]:
    """Resolve a period name (or explicit bounds) into (start, end) YYYY-MM-DD.

    Explicit bounds win over the period name when both are given. Unknown
    period names fall back to the last 7 days.
    """
    today = today or datetime.now(timezone.utc).date()

    if date_from or date_to or period == "custom":
        if not (date_from and date_to):
            raise InvalidPeriodError("Custom period needs both date_from and date_to")
        start, end = _parse_date(date_from), _parse_date(date_to)
        if start > end:
            raise InvalidPeriodError("date_from must not be after date_to")
        return start.isoformat(), end.isoformat()

    if period == "today":
        start, end = today, today
    elif period == "yesterday":
        start = end = today - timedelta(days=1)
    elif period == "this_month":
        start, end = today.replace(day=1), today
    elif period == "last_month":
        end = today.replace(day=1) - timedelta(days=1)
        start = end.replace(day=1)
    elif period == "max":
        start, end = _one_year_before(today), today
    else:
        # "7d" and anything unrecognised: last 7 days including today
        start, end = today - timedelta(days=6), today

    return start.isoformat(), end.isoformat()
