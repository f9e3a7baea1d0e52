"""Tests for date keys, timestamp parsing and month navigation."""
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from calendar_engine.dates import (
    MonthRef,
    date_key,
    local_date,
    month_range,
    navigate_month,
    parse_timestamp,
)
from calendar_engine.errors import MalformedRecordError


def test_date_key_is_zero_padded() -> None:
    """Test that keys are YYYY-MM-DD with padded month and day."""
    assert date_key(date(2024, 6, 3)) == "2024-06-03"
    assert date_key(datetime(987, 1, 9, 23, 59)) == "0987-01-09"


def test_date_key_uses_local_fields_of_aware_timestamps() -> None:
    """Test that a UTC timestamp is keyed by its date in the configured zone."""
    # 22:30 UTC on the 14th is already the 15th in Dubai (UTC+4)
    stamp = datetime(2024, 6, 14, 22, 30, tzinfo=timezone.utc)

    assert date_key(stamp, ZoneInfo("Asia/Dubai")) == "2024-06-15"
    assert date_key(stamp, ZoneInfo("America/New_York")) == "2024-06-14"


def test_local_date_keeps_naive_values() -> None:
    """Test that naive datetimes and plain dates are taken as already local."""
    assert local_date(datetime(2024, 6, 15, 23, 59), ZoneInfo("Asia/Tokyo")) == date(2024, 6, 15)
    assert local_date(date(2024, 6, 15), ZoneInfo("Asia/Tokyo")) == date(2024, 6, 15)


def test_parse_timestamp_variants() -> None:
    """Test that ISO dates, UTC timestamps and offsets are all accepted."""
    assert parse_timestamp("2024-06-15") == date(2024, 6, 15)
    assert parse_timestamp("2024-06-15T08:00:00.000Z") == datetime(2024, 6, 15, 8, tzinfo=timezone.utc)
    assert parse_timestamp("2024-06-15T08:00:00+04:00").utcoffset() == timedelta(hours=4)


@pytest.mark.parametrize("value", [None, "", "yesterday", "2024-13-01", 20240615])
def test_parse_timestamp_rejects_malformed_values(value) -> None:
    """Test that missing or non-ISO values are reported as malformed records."""
    with pytest.raises(MalformedRecordError):
        parse_timestamp(value)


def test_month_range_handles_leap_february() -> None:
    """Test that the last day of February follows leap years."""
    assert month_range(MonthRef(2024, 2)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert month_range(MonthRef(2023, 2)) == (date(2023, 2, 1), date(2023, 2, 28))


def test_navigate_month_rolls_over_years() -> None:
    """Test previous/next month arithmetic across year boundaries."""
    assert navigate_month(MonthRef(2024, 1), "prev") == MonthRef(2023, 12)
    assert navigate_month(MonthRef(2024, 12), "next") == MonthRef(2025, 1)
    assert navigate_month(MonthRef(2024, 6), "next") == MonthRef(2024, 7)
    assert navigate_month(MonthRef(2024, 6), "prev") == MonthRef(2024, 5)


def test_navigate_month_rejects_unknown_direction() -> None:
    """Test that only prev and next are valid directions."""
    with pytest.raises(ValueError):
        navigate_month(MonthRef(2024, 6), "sideways")


def test_month_ref_validation_and_label() -> None:
    """Test month bounds checking and the display label."""
    with pytest.raises(ValueError):
        MonthRef(2024, 13)
    assert MonthRef(2024, 6).label() == "June 2024"
    assert MonthRef(2024, 6).contains(date(2024, 6, 30))
    assert not MonthRef(2024, 6).contains(date(2024, 7, 1))
