"""Exceptions raised by the calendar aggregation engine."""


class CalendarEngineError(RuntimeError):
    """Base class for calendar engine failures."""


class FeedUnavailableError(CalendarEngineError):
    """The tracker API could not deliver the calendar feeds for a month."""


class MalformedRecordError(ValueError):
    """A single feed record is missing fields or carries unparseable values."""
