from datetime import UTC, date, datetime, timedelta, timezone

from taskhub.lib.dates import (
    date_of,
    days_back,
    ms_between,
    parse_date_ref,
    parse_iso,
    to_iso,
    truncate_ms,
)

TODAY = date(2024, 1, 17)  # a Wednesday


def test_to_iso_uses_z_suffix_and_millis():
    assert to_iso(datetime(2024, 1, 5, 9, 30, tzinfo=UTC)) == "2024-01-05T09:30:00.000Z"


def test_to_iso_converts_offsets_to_utc():
    dt = datetime(2024, 1, 5, 1, 0, tzinfo=timezone(timedelta(hours=3)))
    assert to_iso(dt) == "2024-01-04T22:00:00.000Z"


def test_parse_iso_roundtrip():
    dt = datetime(2024, 1, 5, 9, 30, 1, 123000, tzinfo=UTC)
    assert parse_iso(to_iso(dt)) == dt


def test_parse_iso_naive_is_utc():
    assert parse_iso("2024-01-05T09:30:00").tzinfo == UTC


def test_date_of_uses_utc_calendar_day():
    dt = datetime(2024, 1, 5, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert date_of(dt) == "2024-01-06"


def test_truncate_and_ms_between():
    start = truncate_ms(datetime(2024, 1, 1, 0, 0, 0, 999999, tzinfo=UTC))
    assert start.microsecond == 999000
    assert ms_between(start, start + timedelta(seconds=10)) == 10000


def test_days_back_is_inclusive():
    assert days_back(7, TODAY) == ("2024-01-11", "2024-01-17")
    assert days_back(1, TODAY) == ("2024-01-17", "2024-01-17")


def test_parse_date_ref_keywords():
    assert parse_date_ref("today", TODAY) == "2024-01-17"
    assert parse_date_ref("Yesterday", TODAY) == "2024-01-16"
    assert parse_date_ref("tomorrow", TODAY) == "2024-01-18"


def test_parse_date_ref_weekday_looks_back():
    assert parse_date_ref("mon", TODAY) == "2024-01-15"
    assert parse_date_ref("wednesday", TODAY) == "2024-01-17"
    assert parse_date_ref("thu", TODAY) == "2024-01-11"


def test_parse_date_ref_iso():
    assert parse_date_ref("2024-02-29", TODAY) == "2024-02-29"


def test_parse_date_ref_invalid():
    assert parse_date_ref("not a date", TODAY) is None
    assert parse_date_ref("", TODAY) is None
