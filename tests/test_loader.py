"""Tests for the calendar load cycle: replacement, staleness and failures."""
import asyncio
from datetime import date, datetime

import pytest

from calendar_engine.dates import MonthRef
from calendar_engine.errors import FeedUnavailableError
from calendar_engine.loader import CalendarLoader
from calendar_engine.models import CalendarFeeds, SlotAssignmentRecord, SlotRecord, UnitLogRecord


def feeds_for(*days: date) -> CalendarFeeds:
    return CalendarFeeds(
        slot_assignments=[
            SlotAssignmentRecord(date=day, slots=[SlotRecord("s1", checked=True)]) for day in days
        ],
        unit_logs=[UnitLogRecord(datetime.combine(day, datetime.min.time()), "completed") for day in days],
    )


class FakeSource:
    """Feed source serving canned feeds per month start date."""

    def __init__(self, feeds_by_start: dict[date, CalendarFeeds]) -> None:
        self.feeds_by_start = feeds_by_start
        self.calls: list[tuple[date, date]] = []

    async def fetch_calendar_feeds(self, start_date: date, end_date: date) -> CalendarFeeds:
        self.calls.append((start_date, end_date))
        return self.feeds_by_start.get(start_date, CalendarFeeds())


class GatedSource:
    """Feed source whose responses are released manually, per month."""

    def __init__(self) -> None:
        self.gates: dict[date, asyncio.Event] = {}
        self.feeds_by_start: dict[date, CalendarFeeds] = {}

    async def fetch_calendar_feeds(self, start_date: date, end_date: date) -> CalendarFeeds:
        gate = self.gates.setdefault(start_date, asyncio.Event())
        await gate.wait()
        return self.feeds_by_start[start_date]


class FailingSource:
    async def fetch_calendar_feeds(self, start_date: date, end_date: date) -> CalendarFeeds:
        raise FeedUnavailableError("HTTP error from tracker API: 500")


def fixed_today() -> date:
    return date(2024, 6, 15)


@pytest.mark.asyncio
async def test_load_requests_the_whole_month() -> None:
    """Test that a load asks for the inclusive first-to-last day range."""
    source = FakeSource({})
    loader = CalendarLoader(source, clock=fixed_today)

    await loader.load(MonthRef(2024, 2))

    assert source.calls == [(date(2024, 2, 1), date(2024, 2, 29))]
    assert loader.month == MonthRef(2024, 2)


@pytest.mark.asyncio
async def test_default_month_comes_from_the_clock() -> None:
    """Test that the loader starts on the month of today."""
    source = FakeSource({date(2024, 6, 1): feeds_for(date(2024, 6, 10))})
    loader = CalendarLoader(source, clock=fixed_today)

    assert await loader.load() is True
    assert list(loader.get_calendar_model()) == ["2024-06-10"]


@pytest.mark.asyncio
async def test_month_change_replaces_the_model() -> None:
    """Test that navigating fully replaces the previous month's days."""
    source = FakeSource({
        date(2024, 6, 1): feeds_for(date(2024, 6, 10), date(2024, 6, 20)),
        date(2024, 7, 1): feeds_for(date(2024, 7, 2)),
    })
    loader = CalendarLoader(source, clock=fixed_today)
    await loader.load(MonthRef(2024, 6))

    await loader.navigate("next")

    assert loader.month == MonthRef(2024, 7)
    assert list(loader.get_calendar_model()) == ["2024-07-02"]
    view = loader.get_planning_view()
    assert [item.date for item in view.scheduled] == [date(2024, 7, 2)]
    assert view.history == ()


@pytest.mark.asyncio
async def test_stale_response_is_discarded() -> None:
    """Test that a slow answer for an older request never overwrites a newer one."""
    source = GatedSource()
    source.feeds_by_start = {
        date(2024, 6, 1): feeds_for(date(2024, 6, 10)),
        date(2024, 7, 1): feeds_for(date(2024, 7, 2)),
    }
    loader = CalendarLoader(source, clock=fixed_today)

    june = asyncio.create_task(loader.load(MonthRef(2024, 6)))
    await asyncio.sleep(0)
    july = asyncio.create_task(loader.load(MonthRef(2024, 7)))
    await asyncio.sleep(0)

    # July answers first, June's late answer must be dropped
    source.gates[date(2024, 7, 1)].set()
    assert await july is True
    source.gates[date(2024, 6, 1)].set()
    assert await june is False

    assert loader.month == MonthRef(2024, 7)
    assert list(loader.get_calendar_model()) == ["2024-07-02"]


@pytest.mark.asyncio
async def test_partial_model_is_never_exposed() -> None:
    """Test that the previous model stays visible until a load completes."""
    source = GatedSource()
    source.feeds_by_start = {
        date(2024, 6, 1): feeds_for(date(2024, 6, 10)),
        date(2024, 7, 1): feeds_for(date(2024, 7, 2)),
    }
    source.gates[date(2024, 6, 1)] = asyncio.Event()
    source.gates[date(2024, 6, 1)].set()
    loader = CalendarLoader(source, clock=fixed_today)
    await loader.load(MonthRef(2024, 6))

    pending = asyncio.create_task(loader.navigate("next"))
    await asyncio.sleep(0)

    assert loader.month == MonthRef(2024, 6)
    assert list(loader.get_calendar_model()) == ["2024-06-10"]

    source.gates[date(2024, 7, 1)].set()
    await pending
    assert list(loader.get_calendar_model()) == ["2024-07-02"]


@pytest.mark.asyncio
async def test_repeated_navigation_advances_from_the_requested_month() -> None:
    """Test that two quick "next" presses end on the month after next."""
    source = GatedSource()
    source.feeds_by_start = {
        date(2024, 7, 1): feeds_for(date(2024, 7, 2)),
        date(2024, 8, 1): feeds_for(date(2024, 8, 5)),
    }
    loader = CalendarLoader(source, clock=fixed_today)

    first = asyncio.create_task(loader.navigate("next"))
    await asyncio.sleep(0)
    second = asyncio.create_task(loader.navigate("next"))
    await asyncio.sleep(0)

    assert loader.month == MonthRef(2024, 6)
    assert loader.requested_month == MonthRef(2024, 8)
    assert sorted(source.gates) == [date(2024, 7, 1), date(2024, 8, 1)]

    source.gates[date(2024, 7, 1)].set()
    source.gates[date(2024, 8, 1)].set()
    assert await first is False
    assert await second is True

    assert loader.month == MonthRef(2024, 8)
    assert list(loader.get_calendar_model()) == ["2024-08-05"]


@pytest.mark.asyncio
async def test_feed_failure_falls_back_to_empty_model() -> None:
    """Test that an unavailable feed clears the model instead of raising."""
    loader = CalendarLoader(FailingSource(), clock=fixed_today)

    applied = await loader.load(MonthRef(2024, 6))

    assert applied is True
    assert loader.month == MonthRef(2024, 6)
    assert dict(loader.get_calendar_model()) == {}
    assert loader.get_planning_view().is_empty
    assert "500" in loader.last_error


@pytest.mark.asyncio
async def test_successful_load_clears_previous_error() -> None:
    """Test that last_error only describes the latest applied load."""
    loader = CalendarLoader(FailingSource(), clock=fixed_today)
    await loader.load(MonthRef(2024, 6))

    loader.source = FakeSource({date(2024, 6, 1): feeds_for(date(2024, 6, 10))})
    await loader.load()

    assert loader.last_error is None
    assert len(loader.get_calendar_model()) == 1


@pytest.mark.asyncio
async def test_calendar_model_is_read_only() -> None:
    """Test that consumers cannot write into the exposed model."""
    loader = CalendarLoader(FakeSource({date(2024, 6, 1): feeds_for(date(2024, 6, 10))}), clock=fixed_today)
    await loader.load(MonthRef(2024, 6))

    with pytest.raises(TypeError):
        loader.get_calendar_model()["2024-06-11"] = None


@pytest.mark.asyncio
async def test_planning_view_uses_clock_for_today() -> None:
    """Test that the planning split follows the injected clock."""
    source = FakeSource({date(2024, 6, 1): feeds_for(date(2024, 6, 14), date(2024, 6, 15))})
    loader = CalendarLoader(source, clock=fixed_today)
    await loader.load(MonthRef(2024, 6))

    view = loader.get_planning_view()

    assert [item.date.day for item in view.history] == [14]
    assert [item.date.day for item in view.scheduled] == [15]
    assert loader.get_planning_view(today=date(2024, 7, 1)).scheduled == ()
