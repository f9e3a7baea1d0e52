"""
FastAPI service for the teaching calendar.

This service keeps one CalendarLoader for the dashboard: the active month,
its day-keyed model and the planning projections derived from it. Loading
or navigating replaces the model as a whole; read endpoints never fetch.
"""
from __future__ import annotations

import os
import typing as t
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query

from calendar_engine.dates import MonthRef, resolve_timezone
from calendar_engine.feeds import TrackerClient
from calendar_engine.loader import CalendarLoader
from calendar_engine.models import CalendarDay, DayCell, PlanningItem
from calendar_engine.planning import format_planning_item, recent_history
from services.shared.models import (
    CalendarDayModel,
    CalendarModelResponse,
    DayCellModel,
    LoadResponse,
    MonthGridResponse,
    MonthRequest,
    NavigateRequest,
    PlanningItemModel,
    PlanningViewResponse,
    ScheduleEntryModel,
)


CALENDAR_TIMEZONE = os.getenv("CALENDAR_TIMEZONE", "")

# Global loader - will be initialized on startup
loader: CalendarLoader = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the loader on startup, load the current month, close the client on shutdown."""
    global loader

    client = TrackerClient()
    loader = CalendarLoader(client, tz=resolve_timezone(CALENDAR_TIMEZONE))
    await loader.load()

    yield

    await client.aclose()


app = FastAPI(
    title="Calendar Service",
    description="REST API for the teaching calendar model and planning view",
    version="1.0.0",
    lifespan=lifespan,
)


def _get_loader() -> CalendarLoader:
    if loader is None:
        raise HTTPException(status_code=503, detail="Calendar loader is not initialized")
    return loader


def _resolve_month(year: t.Optional[int], month: t.Optional[int]) -> MonthRef:
    active = _get_loader().month
    if year is None and month is None:
        return active
    try:
        return MonthRef(year if year is not None else active.year, month if month is not None else active.month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "service": "calendar-service"}


@app.post("/calendar/load", response_model=LoadResponse)
async def load_month(request: MonthRequest) -> LoadResponse:
    """Load both feeds for a month and replace the calendar model."""
    current = _get_loader()
    applied = await current.load(MonthRef(request.year, request.month))
    return _load_response(current, applied)


@app.post("/calendar/navigate", response_model=LoadResponse)
async def navigate_month(request: NavigateRequest) -> LoadResponse:
    """Move to the previous or next month and reload."""
    current = _get_loader()
    applied = await current.navigate(request.direction)
    return _load_response(current, applied)


@app.get("/calendar/model", response_model=CalendarModelResponse)
async def get_calendar_model() -> CalendarModelResponse:
    """Return the day-keyed model of the active month."""
    current = _get_loader()
    return CalendarModelResponse(
        year=current.month.year,
        month=current.month.month,
        label=current.month.label(),
        days={key: _day_model(day) for key, day in sorted(current.get_calendar_model().items())},
    )


@app.get("/calendar/planning", response_model=PlanningViewResponse)
async def get_planning_view(
    year: t.Optional[int] = Query(default=None),
    month: t.Optional[int] = Query(default=None),
) -> PlanningViewResponse:
    """
    Return the planning view, split into scheduled and history items.

    The view is recomputed from the loaded model on every request; asking for
    a month other than the loaded one yields an empty view.
    """
    current = _get_loader()
    target = _resolve_month(year, month)
    try:
        view = current.get_planning_view(target)
        return PlanningViewResponse(
            year=target.year,
            month=target.month,
            label=target.label(),
            scheduled=[_item_model(item) for item in view.scheduled],
            history=[_item_model(item) for item in view.history],
            recent_history=[_item_model(item) for item in recent_history(view)],
        )
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error building planning view: {str(e)}")


@app.get("/calendar/grid", response_model=MonthGridResponse)
async def get_month_grid(
    year: t.Optional[int] = Query(default=None),
    month: t.Optional[int] = Query(default=None),
) -> MonthGridResponse:
    """Return the month grid used to draw the calendar heat-map."""
    current = _get_loader()
    target = _resolve_month(year, month)
    weeks = current.get_month_grid(target)
    return MonthGridResponse(
        year=target.year,
        month=target.month,
        label=target.label(),
        weeks=[[_cell_model(cell) if cell else None for cell in week] for week in weeks],
    )


def _load_response(current: CalendarLoader, applied: bool) -> LoadResponse:
    return LoadResponse(
        year=current.month.year,
        month=current.month.month,
        label=current.month.label(),
        applied=applied,
        days=len(current.get_calendar_model()),
        error=current.last_error,
    )


def _day_model(day: CalendarDay) -> CalendarDayModel:
    return CalendarDayModel(
        date=day.date,
        assigned_slot_ids=list(day.assigned_slot_ids),
        schedule_entries=[
            ScheduleEntryModel(subject_name=entry.subject_name, batch=entry.batch, slot_ids=list(entry.slot_ids))
            for entry in day.schedule_entries
        ],
        completed_units=day.completed_units,
        in_progress_units=day.in_progress_units,
        total_units=day.total_units,
        entry_conflicts=list(day.entry_conflicts),
    )


def _item_model(item: PlanningItem) -> PlanningItemModel:
    return PlanningItemModel(
        date=item.date,
        hours=item.hours,
        subject=item.subject,
        status=item.status,
        batch=item.batch,
        label=format_planning_item(item),
    )


def _cell_model(cell: DayCell) -> DayCellModel:
    return DayCellModel(
        date=cell.date,
        hours=cell.hours,
        completed_units=cell.completed_units,
        in_progress_units=cell.in_progress_units,
        total_units=cell.total_units,
        is_today=cell.is_today,
        is_planned=cell.is_planned,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8004)
