from datetime import UTC, date, datetime, timedelta

from dateutil import parser as dateutil_parser
from dateutil.parser import ParserError

from . import clock

__all__ = [
    "date_of",
    "days_back",
    "ms_between",
    "parse_date_ref",
    "parse_iso",
    "to_iso",
    "truncate_ms",
]

_DAY_ALIASES = {
    "monday": "mon",
    "tuesday": "tue",
    "wednesday": "wed",
    "thursday": "thu",
    "friday": "fri",
    "saturday": "sat",
    "sunday": "sun",
}
_WEEKDAYS = {"mon": 0, "tue": 1, "wed": 2, "thu": 3, "fri": 4, "sat": 5, "sun": 6}


def to_iso(dt: datetime) -> str:
    """Millisecond-precision UTC ISO string, e.g. 2024-01-05T09:30:00.000Z."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(val: str) -> datetime:
    """Parse an ISO date-time; naive values are taken as UTC."""
    dt = datetime.fromisoformat(val.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def date_of(dt: datetime) -> str:
    """Calendar date (YYYY-MM-DD) of an instant, in UTC."""
    return to_iso(dt)[:10]


def days_back(days: int, today: date | None = None) -> tuple[str, str]:
    """Inclusive (start, end) date strings covering the last `days` days."""
    end = today or clock.today()
    start = end - timedelta(days=max(days, 1) - 1)
    return start.isoformat(), end.isoformat()


def parse_date_ref(ref: str, today: date | None = None) -> str | None:
    """Parse a date reference ('today', 'yesterday', 'mon', 'YYYY-MM-DD', ...) to YYYY-MM-DD.

    Weekday names resolve to the most recent such day, today included, since
    reports look back in time.
    """
    today = today or clock.today()
    lowered = ref.strip().lower()
    if not lowered:
        return None
    if lowered == "today":
        return today.isoformat()
    if lowered == "yesterday":
        return (today - timedelta(days=1)).isoformat()
    if lowered == "tomorrow":
        return (today + timedelta(days=1)).isoformat()
    lowered = _DAY_ALIASES.get(lowered, lowered)
    if lowered in _WEEKDAYS:
        days_since = (today.weekday() - _WEEKDAYS[lowered]) % 7
        return (today - timedelta(days=days_since)).isoformat()
    try:
        return (
            dateutil_parser.parse(ref, default=datetime(today.year, today.month, today.day))
            .date()
            .isoformat()
        )
    except (ParserError, ValueError, OverflowError):
        return None


def truncate_ms(dt: datetime) -> datetime:
    return dt.replace(microsecond=dt.microsecond // 1000 * 1000)


def ms_between(start: datetime, end: datetime) -> int:
    return (end - start) // timedelta(milliseconds=1)
