"""Unit log accumulator: unit-of-work records -> per-day status counters."""
from __future__ import annotations

import typing as t
from datetime import tzinfo

from calendar_engine.dates import date_key, local_date
from calendar_engine.models import UnitLogRecord, UnitTally


COMPLETED = "completed"
IN_PROGRESS = "in-progress"


def tally_of(log: UnitLogRecord, tz: t.Optional[tzinfo] = None) -> UnitTally:
    """Counters contributed by a single log record."""
    return UnitTally(
        date=local_date(log.start_time, tz),
        completed=1 if log.status == COMPLETED else 0,
        in_progress=1 if log.status == IN_PROGRESS else 0,
        total=1,
    )


def fold_unit_logs(
    logs: t.Iterable[UnitLogRecord],
    tz: t.Optional[tzinfo] = None,
) -> dict[str, UnitTally]:
    """Group unit logs by the local date of their start time and count them.

    Any status other than completed or in-progress only counts toward the
    total. Grouping uses the start time, never the completion time.
    """
    tallies: dict[str, UnitTally] = {}
    for log in logs:
        tally = tally_of(log, tz)
        key = date_key(tally.date)
        tallies[key] = tallies[key] + tally if key in tallies else tally
    return tallies
