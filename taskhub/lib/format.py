from datetime import datetime

__all__ = ["format_duration", "format_elapsed"]


def format_duration(milliseconds: int) -> str:
    """Format a millisecond count as HH:MM:SS; hours are not wrapped at 24."""
    seconds = max(0, int(milliseconds)) // 1000
    h, rem = divmod(seconds, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def format_elapsed(dt: datetime, now: datetime) -> str:
    """Format a datetime as a human-readable relative string (e.g. '5m ago', '3h ago')."""
    s = int((now - dt).total_seconds())
    if s < 60:
        return f"{s}s ago"
    m = s // 60
    if m < 60:
        return f"{m}m ago"
    h = m // 60
    if h < 24:
        return f"{h}h ago"
    d = h // 24
    if d < 7:
        return f"{d}d ago"
    return dt.strftime("%Y-%m-%d")
