"""
HTTP client for the teaching-progress tracker API.

Retrieves the slot assignment and unit log feeds for a date range from
GET /teacher/calendar and converts them from the API's Pydantic wire models
into the engine's dataclasses. Records that fail validation are skipped one
by one; a failed request fails the whole retrieval.
"""
from __future__ import annotations

import logging
import os
import typing as t
from datetime import date

import httpx
from pydantic import ValidationError

from calendar_engine.dates import date_key, parse_timestamp
from calendar_engine.errors import FeedUnavailableError, MalformedRecordError
from calendar_engine.models import (
    CalendarFeeds,
    ScheduleEntry,
    SlotAssignmentRecord,
    SlotRecord,
    UnitLogRecord,
)
from services.shared.models import (
    CalendarFeedEnvelope,
    SlotAssignmentRecord as PydanticSlotAssignmentRecord,
    UnitLogRecord as PydanticUnitLogRecord,
)


logger = logging.getLogger(__name__)

# Tracker API settings - configurable via environment variables
TRACKER_API_URL = os.getenv("TRACKER_API_URL", "http://localhost:5000/api")
TRACKER_API_TOKEN = os.getenv("TRACKER_API_TOKEN", "")
TRACKER_TIMEOUT = float(os.getenv("TRACKER_TIMEOUT", "30"))

CALENDAR_ENDPOINT = "/teacher/calendar"


def to_slot_assignment(raw: dict[str, t.Any]) -> SlotAssignmentRecord:
    """Validate one raw timeSlots record and convert it to a dataclass.

    Raises:
        MalformedRecordError: If required fields are missing or invalid
    """
    try:
        record = PydanticSlotAssignmentRecord.model_validate(raw)
    except ValidationError as e:
        raise MalformedRecordError(f"Invalid slot assignment record: {e}") from e

    return SlotAssignmentRecord(
        date=parse_timestamp(record.date),
        slots=[
            SlotRecord(slot_id=slot.slot_id, checked=slot.checked, status=slot.status or None)
            for slot in record.slots
        ],
        scheduled_slot_ids=list(record.scheduled_slot_ids or []),
        schedule_entries=[
            ScheduleEntry(
                subject_name=entry.subject_name or "",
                slot_ids=tuple(entry.slot_ids),
                batch=entry.batch or None,
            )
            for entry in record.schedule_entries or []
        ],
    )


def to_unit_log(raw: dict[str, t.Any]) -> UnitLogRecord:
    """Validate one raw unitLogs record and convert it to a dataclass.

    Raises:
        MalformedRecordError: If startTime or status is missing or invalid
    """
    try:
        record = PydanticUnitLogRecord.model_validate(raw)
    except ValidationError as e:
        raise MalformedRecordError(f"Invalid unit log record: {e}") from e
    return UnitLogRecord(start_time=parse_timestamp(record.start_time), status=record.status)


_Record = t.TypeVar("_Record")


def convert_records(
    raw_records: t.Iterable[t.Any],
    convert: t.Callable[[dict[str, t.Any]], _Record],
    kind: str,
) -> list[_Record]:
    """Convert raw records, skipping (and logging) the malformed ones."""
    converted: list[_Record] = []
    for index, raw in enumerate(raw_records):
        try:
            if not isinstance(raw, dict):
                raise MalformedRecordError(f"Expected an object, got {type(raw).__name__}")
            converted.append(convert(raw))
        except MalformedRecordError as e:
            logger.warning("Skipping malformed %s record #%d: %s", kind, index, e)
    return converted


def parse_calendar_feeds(payload: t.Any) -> CalendarFeeds:
    """Convert a /teacher/calendar response body into CalendarFeeds.

    Raises:
        FeedUnavailableError: If the envelope is invalid or reports failure
    """
    try:
        envelope = CalendarFeedEnvelope.model_validate(payload)
    except ValidationError as e:
        raise FeedUnavailableError(f"Unexpected calendar response: {e}") from e

    if not envelope.success or envelope.data is None:
        raise FeedUnavailableError(envelope.message or "Calendar request was not successful")

    return CalendarFeeds(
        slot_assignments=convert_records(envelope.data.time_slots or [], to_slot_assignment, "slot assignment"),
        unit_logs=convert_records(envelope.data.unit_logs or [], to_unit_log, "unit log"),
    )


class TrackerClient:
    """Async client for the tracker API calendar endpoint."""

    def __init__(
        self,
        base_url: str = TRACKER_API_URL,
        token: str = TRACKER_API_TOKEN,
        timeout: float = TRACKER_TIMEOUT,
        transport: t.Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "TrackerClient":
        return self

    async def __aexit__(self, *exc_info: t.Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_calendar_feeds(self, start_date: date, end_date: date) -> CalendarFeeds:
        """Retrieve both feeds for the inclusive local date range.

        Raises:
            FeedUnavailableError: On timeouts, transport errors, HTTP errors
                or an unsuccessful response envelope
        """
        # Local calendar fields, never a UTC conversion of local midnight
        params = {"startDate": date_key(start_date), "endDate": date_key(end_date)}
        try:
            response = await self._client.get(CALENDAR_ENDPOINT, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as e:
            raise FeedUnavailableError(f"Tracker API timed out after {self.timeout} seconds") from e
        except httpx.HTTPStatusError as e:
            raise FeedUnavailableError(
                f"HTTP error from tracker API: {e.response.status_code} {e.response.text}"
            ) from e
        except httpx.HTTPError as e:
            raise FeedUnavailableError(f"Error calling tracker API: {e}") from e
        except ValueError as e:
            raise FeedUnavailableError(f"Tracker API returned invalid JSON: {e}") from e

        return parse_calendar_feeds(payload)
