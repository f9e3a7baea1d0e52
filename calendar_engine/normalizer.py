"""Slot assignment normalizer: per-day slot payloads -> displayed slot ids."""
from __future__ import annotations

import logging
import typing as t
from datetime import tzinfo

from calendar_engine.dates import date_key, local_date
from calendar_engine.models import ScheduleEntry, SlotAssignmentRecord, SlotDay


logger = logging.getLogger(__name__)

APPROVED = "approved"


def is_active_slot(slot) -> bool:
    """A slot counts when it is checked and either approved or not gated."""
    if not slot.checked:
        return False
    return slot.status is None or slot.status == "" or slot.status == APPROVED


def select_display_slots(record: SlotAssignmentRecord) -> list[str]:
    """Pick the slot ids to display for one day.

    A non-empty scheduled override is an approved, sent timetable and wins
    over ad-hoc checkmarks. Otherwise only active checked slots are used.

    Args:
        record: The per-day scheduling record

    Returns:
        Distinct slot ids in feed order; empty when the day has nothing to show
    """
    if record.scheduled_slot_ids:
        slot_ids = list(record.scheduled_slot_ids)
    else:
        slot_ids = [slot.slot_id for slot in record.slots if is_active_slot(slot)]

    unique = list(dict.fromkeys(slot_ids))
    if len(unique) != len(slot_ids):
        logger.warning("Dropping duplicate slot ids for %s: %s", record.date, slot_ids)
    return unique


def fold_slot_assignments(
    records: t.Iterable[SlotAssignmentRecord],
    tz: t.Optional[tzinfo] = None,
) -> dict[str, SlotDay]:
    """Fold slot assignment records into a date_key -> SlotDay mapping.

    Days without any displayed slot are omitted. A later record for an
    existing date overwrites its slot fields rather than adding to them.
    """
    days: dict[str, SlotDay] = {}

    for record in records:
        display_slots = select_display_slots(record)
        if not display_slots:
            continue

        day = local_date(record.date, tz)
        key = date_key(day)
        if key in days:
            logger.debug("Slot assignment for %s overrides an earlier record", key)

        entries = tuple(
            ScheduleEntry(
                subject_name=entry.subject_name or "",
                slot_ids=tuple(entry.slot_ids),
                batch=entry.batch or None,
            )
            for entry in record.schedule_entries
        )
        days[key] = SlotDay(
            date=day,
            assigned_slot_ids=tuple(display_slots),
            schedule_entries=entries,
        )

    return days
