"""
Data models for the teaching calendar engine.

Feed records mirror what the tracker API delivers for one month; the day and
planning models are what the dashboard views are rendered from. Derived
models are frozen so consumers cannot feed them back into a load cycle.
"""
from __future__ import annotations

import typing as t
from dataclasses import dataclass, field
from datetime import date, datetime


PlanningStatus = t.Literal["scheduled", "history"]

UNGROUPED_SUBJECT = "Class"


# Feed records

@dataclass
class SlotRecord:
    """One time slot of a day as the teacher ticked it."""
    slot_id: str
    checked: bool = False
    status: t.Optional[str] = None  # "approved", "pending", "rejected" or no approval gate


@dataclass(frozen=True)
class ScheduleEntry:
    """Slots of a day grouped by subject and batch."""
    subject_name: str
    slot_ids: tuple[str, ...] = ()
    batch: t.Optional[str] = None


@dataclass
class SlotAssignmentRecord:
    """Per-day output of the scheduling and approval workflow."""
    date: date | datetime
    slots: list[SlotRecord] = field(default_factory=list)
    scheduled_slot_ids: list[str] = field(default_factory=list)  # approved, sent timetable
    schedule_entries: list[ScheduleEntry] = field(default_factory=list)


@dataclass
class UnitLogRecord:
    """A unit of work started by the teacher."""
    start_time: date | datetime
    status: str


@dataclass
class CalendarFeeds:
    """Both feeds retrieved for one month."""
    slot_assignments: list[SlotAssignmentRecord] = field(default_factory=list)
    unit_logs: list[UnitLogRecord] = field(default_factory=list)


# Partial models produced by the folds

@dataclass(frozen=True)
class SlotDay:
    """Slot side of a calendar day."""
    date: date
    assigned_slot_ids: tuple[str, ...]
    schedule_entries: tuple[ScheduleEntry, ...] = ()


@dataclass(frozen=True)
class UnitTally:
    """Unit-log side of a calendar day."""
    date: date
    completed: int = 0
    in_progress: int = 0
    total: int = 0

    def __add__(self, other: "UnitTally") -> "UnitTally":
        return UnitTally(
            date=self.date,
            completed=self.completed + other.completed,
            in_progress=self.in_progress + other.in_progress,
            total=self.total + other.total,
        )


# Merged and derived models

@dataclass(frozen=True)
class CalendarDay:
    """One calendar date with at least one relevant event."""
    date: date
    assigned_slot_ids: tuple[str, ...] = ()
    schedule_entries: tuple[ScheduleEntry, ...] = ()
    completed_units: int = 0
    in_progress_units: int = 0
    total_units: int = 0
    entry_conflicts: tuple[str, ...] = ()

    @property
    def hours(self) -> int:
        return len(self.assigned_slot_ids)


@dataclass(frozen=True)
class PlanningItem:
    """One row of the planning list: a subject's hours on a date."""
    date: date
    hours: int
    subject: str
    status: PlanningStatus
    batch: t.Optional[str] = None

    @property
    def is_ungrouped(self) -> bool:
        return self.subject == UNGROUPED_SUBJECT


@dataclass(frozen=True)
class PlanningView:
    """Planning list split into upcoming and past items, both by ascending date."""
    scheduled: tuple[PlanningItem, ...] = ()
    history: tuple[PlanningItem, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.scheduled and not self.history


@dataclass(frozen=True)
class DayCell:
    """A day in the month grid used for the calendar heat-map."""
    date: date
    hours: int = 0
    completed_units: int = 0
    in_progress_units: int = 0
    total_units: int = 0
    is_today: bool = False
    is_planned: bool = False
