"""
Calendar date helpers shared by the aggregation engine.

Every day in the calendar model is keyed by its *local* calendar date. Aware
timestamps coming from the tracker API are converted into the configured
time zone before the date is taken, so a class at 00:30 local time never
lands on the previous day because the payload was serialized in UTC.
"""
from __future__ import annotations

import calendar
import typing as t
from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from zoneinfo import ZoneInfo

from calendar_engine.errors import MalformedRecordError


Direction = t.Literal["prev", "next"]


@dataclass(frozen=True, order=True)
class MonthRef:
    """A calendar month, e.g. MonthRef(2024, 6) for June 2024."""
    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be in 1..12, got {self.month}")
        if not 1 <= self.year <= 9999:
            raise ValueError(f"Year must be in 1..9999, got {self.year}")

    @classmethod
    def of(cls, value: date) -> "MonthRef":
        return cls(value.year, value.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def contains(self, value: date) -> bool:
        return self.first_day <= value <= self.last_day

    def label(self) -> str:
        """Human label such as "June 2024"."""
        return f"{calendar.month_name[self.month]} {self.year}"


def resolve_timezone(name: t.Optional[str]) -> t.Optional[tzinfo]:
    """Resolve an IANA zone name; None or "" means the system local zone."""
    if not name:
        return None
    return ZoneInfo(name)


def local_date(value: date | datetime, tz: t.Optional[tzinfo] = None) -> date:
    """Return the local calendar date of a date or datetime.

    Args:
        value: A date, a naive datetime (already local) or an aware datetime
        tz: Zone to convert aware datetimes into. None means the system zone.

    Returns:
        The calendar date in the local zone
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


def date_key(value: date | datetime, tz: t.Optional[tzinfo] = None) -> str:
    """Canonical YYYY-MM-DD key built from local year/month/day fields."""
    day = local_date(value, tz)
    return f"{day.year:04d}-{day.month:02d}-{day.day:02d}"


def parse_timestamp(value: t.Any) -> date | datetime:
    """Parse a tracker API date value.

    Plain "YYYY-MM-DD" strings are calendar dates and are never shifted.
    Anything longer is an ISO timestamp; a trailing "Z" means UTC.

    Raises:
        MalformedRecordError: If the value is missing or not ISO formatted
    """
    if isinstance(value, (date, datetime)):
        return value
    if not isinstance(value, str) or not value.strip():
        raise MalformedRecordError(f"Expected an ISO date string, got {value!r}")
    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as e:
        raise MalformedRecordError(f"Invalid ISO date {value!r}: {e}") from e


def month_range(month: MonthRef) -> tuple[date, date]:
    """Inclusive (first, last) calendar dates of a month."""
    return month.first_day, month.last_day


def navigate_month(month: MonthRef, direction: Direction) -> MonthRef:
    """Return the month before or after `month`, rolling the year over."""
    if direction == "prev":
        if month.month == 1:
            return MonthRef(month.year - 1, 12)
        return MonthRef(month.year, month.month - 1)
    if direction == "next":
        if month.month == 12:
            return MonthRef(month.year + 1, 1)
        return MonthRef(month.year, month.month + 1)
    raise ValueError(f"Unknown direction {direction!r}, expected 'prev' or 'next'")


def today_in(tz: t.Optional[tzinfo] = None) -> date:
    """Today's local calendar date in the given zone."""
    return datetime.now(tz).date() if tz is not None else date.today()
