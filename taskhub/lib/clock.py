from datetime import UTC, date, datetime

__all__ = ["now", "now_ms", "today"]


def now() -> datetime:
    return datetime.now(UTC)


def now_ms() -> int:
    return int(now().timestamp() * 1000)


def today() -> date:
    return now().date()
