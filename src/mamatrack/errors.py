# src/mamatrack/errors.py


class MamaTrackError(Exception):
    """Base class for all errors raised by mamatrack."""


class InvalidDateError(MamaTrackError, ValueError):
    """An anchor date or 'today' value could not be read as a calendar date."""

    def __init__(self, value, reason: str = ""):
        self.value = value
        msg = f"Invalid calendar date: {value!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class InvalidRecordError(MamaTrackError, ValueError):
    """Record data rejected at the boundary (unknown status, category, ...)."""


class RecordNotFoundError(MamaTrackError, LookupError):
    def __init__(self, table: str, record_id):
        self.table = table
        self.record_id = record_id
        super().__init__(f"No row in {table} with id={record_id}")


class LLMError(MamaTrackError, RuntimeError):
    """The chat completion endpoint failed or returned garbage."""
