"""
Shared Pydantic models for REST API serialization.

Upstream models mirror the tracker API's camelCase JSON for the calendar
endpoint; response models are what the calendar service returns. The engine
itself works on the dataclasses in calendar_engine.models.
"""
from __future__ import annotations

import typing as t
import datetime as dt

from pydantic import BaseModel, ConfigDict, Field


# Tracker API models (upstream)
class _TrackerModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SlotRecord(_TrackerModel):
    """One time slot of a day."""
    slot_id: str = Field(alias="slotId")
    checked: bool = False
    status: t.Optional[str] = None  # "approved", "pending", "rejected" or absent


class ScheduleEntry(_TrackerModel):
    """Slots of a day grouped by subject and batch."""
    subject_name: t.Optional[str] = Field(default="", alias="subjectName")
    batch: t.Optional[str] = None
    slot_ids: list[str] = Field(default_factory=list, alias="slotIds")


class SlotAssignmentRecord(_TrackerModel):
    """
    One DailyTimeSlot document as returned under data.timeSlots.
    - date: ISO timestamp of the day
    - scheduledSlotIds: timetable approved and sent by the verifier
    """
    date: str
    slots: list[SlotRecord]
    scheduled_slot_ids: t.Optional[list[str]] = Field(default=None, alias="scheduledSlotIds")
    schedule_entries: t.Optional[list[ScheduleEntry]] = Field(default=None, alias="scheduleEntries")


class UnitLogRecord(_TrackerModel):
    """A unit log as returned under data.unitLogs."""
    start_time: str = Field(alias="startTime")
    status: str


class CalendarFeedData(_TrackerModel):
    """Raw record lists; records are validated one by one by the client."""
    time_slots: t.Optional[list[t.Any]] = Field(default=None, alias="timeSlots")
    unit_logs: t.Optional[list[t.Any]] = Field(default=None, alias="unitLogs")


class CalendarFeedEnvelope(_TrackerModel):
    """Response envelope of GET /teacher/calendar."""
    success: bool = False
    message: str = ""
    data: t.Optional[CalendarFeedData] = None


# Calendar service models (downstream)
PlanningStatus = t.Literal["scheduled", "history"]


class MonthRequest(BaseModel):
    """Request model for loading a month."""
    year: int = Field(ge=1, le=9999)
    month: int = Field(ge=1, le=12)


class NavigateRequest(BaseModel):
    """Request model for moving to the previous or next month."""
    direction: t.Literal["prev", "next"]


class LoadResponse(BaseModel):
    """Response model after a load cycle."""
    year: int
    month: int
    label: str
    applied: bool
    days: int
    error: t.Optional[str] = None


class ScheduleEntryModel(BaseModel):
    subject_name: str
    batch: t.Optional[str] = None
    slot_ids: list[str] = Field(default_factory=list)


class CalendarDayModel(BaseModel):
    """One day of the calendar model."""
    date: dt.date
    assigned_slot_ids: list[str] = Field(default_factory=list)
    schedule_entries: list[ScheduleEntryModel] = Field(default_factory=list)
    completed_units: int = 0
    in_progress_units: int = 0
    total_units: int = 0
    entry_conflicts: list[str] = Field(default_factory=list)


class CalendarModelResponse(BaseModel):
    """Response model for the day-keyed calendar model."""
    year: int
    month: int
    label: str
    days: dict[str, CalendarDayModel] = Field(default_factory=dict)


class PlanningItemModel(BaseModel):
    """A planning row."""
    date: dt.date
    hours: int
    subject: str
    status: PlanningStatus
    batch: t.Optional[str] = None
    label: str = ""


class PlanningViewResponse(BaseModel):
    """Response model for the planning view of a month."""
    year: int
    month: int
    label: str
    scheduled: list[PlanningItemModel] = Field(default_factory=list)
    history: list[PlanningItemModel] = Field(default_factory=list)
    recent_history: list[PlanningItemModel] = Field(default_factory=list)


class DayCellModel(BaseModel):
    date: dt.date
    hours: int = 0
    completed_units: int = 0
    in_progress_units: int = 0
    total_units: int = 0
    is_today: bool = False
    is_planned: bool = False


class MonthGridResponse(BaseModel):
    """Response model for the calendar heat-map grid."""
    year: int
    month: int
    label: str
    weeks: list[list[t.Optional[DayCellModel]]] = Field(default_factory=list)
