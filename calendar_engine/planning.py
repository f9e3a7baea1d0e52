"""
Planning projector.

Turns the day-keyed calendar model into the planning list for one month:
one item per (day, schedule entry) with hours, classified as scheduled or
history relative to today. Also builds the month grid used by the calendar
heat-map.
"""
from __future__ import annotations

import calendar
import typing as t
from datetime import date

from calendar_engine.dates import MonthRef
from calendar_engine.models import (
    UNGROUPED_SUBJECT,
    CalendarDay,
    DayCell,
    PlanningItem,
    PlanningStatus,
    PlanningView,
    ScheduleEntry,
)


RECENT_HISTORY_LIMIT = 7


def entries_for(day: CalendarDay) -> tuple[ScheduleEntry, ...]:
    """A day's schedule entries, or one ungrouped entry covering all its slots."""
    if day.schedule_entries:
        return day.schedule_entries
    return (ScheduleEntry(subject_name=UNGROUPED_SUBJECT, slot_ids=day.assigned_slot_ids),)


def classify(day: date, today: date) -> PlanningStatus:
    return "history" if day < today else "scheduled"


def project_planning(
    model: t.Mapping[str, CalendarDay],
    month: MonthRef,
    today: date,
) -> list[PlanningItem]:
    """Flatten the model into planning items for `month`, sorted by date.

    Args:
        model: The day-keyed calendar model
        month: Active month; days outside it are ignored
        today: Local date used to split scheduled from history

    Returns:
        Items in ascending date order. Items sharing a date keep the order
        their entries were found in.
    """
    items: list[PlanningItem] = []

    for day in model.values():
        if not month.contains(day.date):
            continue
        if not day.assigned_slot_ids:
            continue

        status = classify(day.date, today)
        for entry in entries_for(day):
            hours = len(entry.slot_ids)
            if hours == 0:
                continue
            items.append(PlanningItem(
                date=day.date,
                hours=hours,
                subject=entry.subject_name or UNGROUPED_SUBJECT,
                status=status,
                batch=entry.batch or None,
            ))

    # sorted() is stable, so same-day items stay in discovery order
    return sorted(items, key=lambda item: item.date)


def planning_view(
    model: t.Mapping[str, CalendarDay],
    month: MonthRef,
    today: date,
) -> PlanningView:
    """Split the planning list into scheduled and history, preserving order."""
    items = project_planning(model, month, today)
    return PlanningView(
        scheduled=tuple(item for item in items if item.status == "scheduled"),
        history=tuple(item for item in items if item.status == "history"),
    )


def recent_history(view: PlanningView, limit: int = RECENT_HISTORY_LIMIT) -> list[PlanningItem]:
    """The last `limit` history items, most recent first."""
    if limit <= 0:
        return []
    return list(reversed(view.history[-limit:]))


def build_month_grid(
    model: t.Mapping[str, CalendarDay],
    month: MonthRef,
    today: date,
    firstweekday: int = calendar.SUNDAY,
) -> list[list[t.Optional[DayCell]]]:
    """Weeks of day cells for the calendar heat-map.

    Padding days outside the month are None. A day is planned when it has
    at least one planning item; today is never also marked as planned.
    """
    hours_by_date: dict[date, int] = {}
    for item in project_planning(model, month, today):
        hours_by_date[item.date] = hours_by_date.get(item.date, 0) + item.hours

    days_by_date = {day.date: day for day in model.values() if month.contains(day.date)}

    weeks: list[list[t.Optional[DayCell]]] = []
    for week in calendar.Calendar(firstweekday).monthdatescalendar(month.year, month.month):
        row: list[t.Optional[DayCell]] = []
        for current in week:
            if current.month != month.month:
                row.append(None)
                continue
            day = days_by_date.get(current)
            is_today = current == today
            row.append(DayCell(
                date=current,
                hours=hours_by_date.get(current, 0),
                completed_units=day.completed_units if day else 0,
                in_progress_units=day.in_progress_units if day else 0,
                total_units=day.total_units if day else 0,
                is_today=is_today,
                is_planned=current in hours_by_date and not is_today,
            ))
        weeks.append(row)
    return weeks


def format_hours(hours: int) -> str:
    return f"{hours} hr" if hours == 1 else f"{hours} hrs"


def display_subject(item: PlanningItem) -> str:
    """Subject as shown to users; ungrouped class time is a dash."""
    return "—" if item.is_ungrouped else item.subject


def format_planning_item(item: PlanningItem) -> str:
    """Label such as "Mon, Jun 3 - 2 hrs · Physics · Batch A"."""
    label = f"{item.date.strftime('%a, %b')} {item.date.day} - {format_hours(item.hours)}"
    if not item.is_ungrouped or item.batch:
        label += f" · {display_subject(item)}"
        if item.batch:
            label += f" · Batch {item.batch}"
    return label
