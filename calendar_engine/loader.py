"""
Load cycle for the teaching calendar.

A `CalendarLoader` owns the day-keyed model of the active month. Every load
fetches both feeds for the month, builds a fresh model and swaps it in as a
whole. Loads can overlap (e.g. quick month changes); each one captures a
generation number and its result is only applied if no newer load has been
started since, so a late answer for an old month never shows under a new
month's label.
"""
from __future__ import annotations

import logging
import typing as t
from datetime import date, tzinfo
from types import MappingProxyType

from calendar_engine.dates import Direction, MonthRef, month_range, navigate_month, today_in
from calendar_engine.errors import FeedUnavailableError
from calendar_engine.merger import build_calendar_model
from calendar_engine.models import CalendarDay, CalendarFeeds, DayCell, PlanningView
from calendar_engine.planning import build_month_grid, planning_view


logger = logging.getLogger(__name__)


class FeedSource(t.Protocol):
    """Anything able to retrieve both calendar feeds for a date range."""

    async def fetch_calendar_feeds(self, start_date: date, end_date: date) -> CalendarFeeds:
        ...


class CalendarLoader:
    """Holds the calendar model of the active month and its projections."""

    def __init__(
        self,
        source: FeedSource,
        tz: t.Optional[tzinfo] = None,
        clock: t.Optional[t.Callable[[], date]] = None,
        month: t.Optional[MonthRef] = None,
    ) -> None:
        self.source = source
        self.tz = tz
        self._clock = clock or (lambda: today_in(tz))
        self._generation = 0
        self._month = month or MonthRef.of(self._clock())
        self._requested_month = self._month
        self._model: t.Mapping[str, CalendarDay] = MappingProxyType({})
        self.last_error: t.Optional[str] = None

    @property
    def month(self) -> MonthRef:
        """The active month, i.e. the month of the model last applied."""
        return self._month

    @property
    def requested_month(self) -> MonthRef:
        """The month of the most recently started load."""
        return self._requested_month

    @property
    def generation(self) -> int:
        return self._generation

    def today(self) -> date:
        return self._clock()

    async def load(self, month: t.Optional[MonthRef] = None) -> bool:
        """Fetch and apply the model for `month` (default: the last requested month).

        A failed retrieval applies an empty model for the requested month.

        Returns:
            True if the result was applied, False if a newer load superseded it
        """
        month = month or self._requested_month
        self._generation += 1
        self._requested_month = month
        generation = self._generation
        start_date, end_date = month_range(month)

        error: t.Optional[str] = None
        try:
            feeds = await self.source.fetch_calendar_feeds(start_date, end_date)
        except FeedUnavailableError as e:
            logger.warning("Calendar feeds for %s unavailable: %s", month.label(), e)
            feeds = CalendarFeeds()
            error = str(e)

        if generation != self._generation:
            logger.debug(
                "Discarding stale calendar response for %s (generation %d, current %d)",
                month.label(), generation, self._generation,
            )
            return False

        model = build_calendar_model(feeds, self.tz)
        self._model, self._month, self.last_error = MappingProxyType(model), month, error
        logger.info("Loaded %d calendar day(s) for %s", len(model), month.label())
        return True

    async def navigate(self, direction: Direction) -> bool:
        """Move to the previous or next month and reload.

        Steps from the most recently requested month, so repeated presses
        while a load is in flight keep advancing.
        """
        return await self.load(navigate_month(self._requested_month, direction))

    def get_calendar_model(self) -> t.Mapping[str, CalendarDay]:
        """Read-only day-keyed model of the active month."""
        return self._model

    def get_planning_view(
        self,
        month: t.Optional[MonthRef] = None,
        today: t.Optional[date] = None,
    ) -> PlanningView:
        """Planning view of `month` (default: active month), recomputed on every call."""
        return planning_view(self._model, month or self._month, today or self.today())

    def get_month_grid(
        self,
        month: t.Optional[MonthRef] = None,
        today: t.Optional[date] = None,
    ) -> list[list[t.Optional[DayCell]]]:
        return build_month_grid(self._model, month or self._month, today or self.today())
