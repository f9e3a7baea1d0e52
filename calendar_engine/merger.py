"""
Calendar merger.

The slot feed and the unit-log feed are folded independently into partial
mappings keyed by `date_key`; this module combines them into the day-keyed
calendar model. The combine step is associative and, because only the slot
feed carries slot fields, it does not matter which feed is processed first.
"""
from __future__ import annotations

import logging
import typing as t
from datetime import tzinfo

from calendar_engine.accumulator import fold_unit_logs
from calendar_engine.models import CalendarDay, CalendarFeeds, SlotDay, UnitTally
from calendar_engine.normalizer import fold_slot_assignments


logger = logging.getLogger(__name__)

CalendarModel = dict[str, CalendarDay]


def find_entry_conflicts(day: SlotDay) -> tuple[str, ...]:
    """Slot ids that break the partition of a day's slots into entries.

    A slot listed in two entries, or listed in an entry while not being one
    of the day's assigned slots, is reported once, in discovery order.
    """
    assigned = set(day.assigned_slot_ids)
    seen: set[str] = set()
    conflicts: list[str] = []
    for entry in day.schedule_entries:
        for slot_id in dict.fromkeys(entry.slot_ids):
            if (slot_id in seen or slot_id not in assigned) and slot_id not in conflicts:
                conflicts.append(slot_id)
            seen.add(slot_id)
    return tuple(conflicts)


def day_from_slots(slot_day: SlotDay) -> CalendarDay:
    conflicts = find_entry_conflicts(slot_day)
    if conflicts:
        logger.warning(
            "Schedule entries on %s do not partition the assigned slots: %s",
            slot_day.date.isoformat(), ", ".join(conflicts),
        )
    return CalendarDay(
        date=slot_day.date,
        assigned_slot_ids=slot_day.assigned_slot_ids,
        schedule_entries=slot_day.schedule_entries,
        entry_conflicts=conflicts,
    )


def day_from_tally(tally: UnitTally) -> CalendarDay:
    return CalendarDay(
        date=tally.date,
        completed_units=tally.completed,
        in_progress_units=tally.in_progress,
        total_units=tally.total,
    )


def combine_days(left: CalendarDay, right: CalendarDay) -> CalendarDay:
    """Combine two views of the same date.

    Unit counters add up. Slot fields are taken from whichever side has
    assigned slots, the right side winning when both have them.
    """
    slot_side = right if right.assigned_slot_ids else left
    return CalendarDay(
        date=left.date,
        assigned_slot_ids=slot_side.assigned_slot_ids,
        schedule_entries=slot_side.schedule_entries,
        completed_units=left.completed_units + right.completed_units,
        in_progress_units=left.in_progress_units + right.in_progress_units,
        total_units=left.total_units + right.total_units,
        entry_conflicts=slot_side.entry_conflicts,
    )


def combine_models(left: t.Mapping[str, CalendarDay], right: t.Mapping[str, CalendarDay]) -> CalendarModel:
    """Merge two day-keyed models into a new one; neither input is modified."""
    merged: CalendarModel = dict(left)
    for key, day in right.items():
        merged[key] = combine_days(merged[key], day) if key in merged else day
    return merged


def merge_calendar(
    slot_days: t.Mapping[str, SlotDay],
    unit_tallies: t.Mapping[str, UnitTally],
) -> CalendarModel:
    """Combine both partial mappings into the calendar model.

    Either mapping may be empty; days present in only one of them are kept.
    """
    from_slots = {key: day_from_slots(day) for key, day in slot_days.items()}
    from_units = {key: day_from_tally(tally) for key, tally in unit_tallies.items()}
    return combine_models(from_slots, from_units)


def build_calendar_model(
    feeds: t.Optional[CalendarFeeds],
    tz: t.Optional[tzinfo] = None,
) -> CalendarModel:
    """Build the day-keyed model for one load cycle from the raw feeds."""
    if feeds is None:
        return {}
    return merge_calendar(
        fold_slot_assignments(feeds.slot_assignments, tz),
        fold_unit_logs(feeds.unit_logs, tz),
    )
