"""Error taxonomy for timetable queries and custom trip writes.

Services raise these; the tool layer turns them into ``ErrorDetail``
payloads on the response models.
"""

from traincheck.models.responses import ErrorDetail


class TimetableError(Exception):
    """Base class for all timetable errors."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> ErrorDetail:
        """Build the caller-facing error payload."""
        return ErrorDetail(kind=self.kind, message=self.message, status_code=self.status_code)


class InvalidInputError(TimetableError):
    """Malformed date/time, missing field, or identical start and end station."""

    kind = "invalid_input"
    status_code = 400


class NotFoundError(TimetableError):
    """A named station has no matching row."""

    kind = "not_found"
    status_code = 404


class ConflictError(TimetableError):
    """A write collided with an existing key."""

    kind = "conflict"
    status_code = 409


class StoreUnavailableError(TimetableError):
    """The relational store failed or could not be opened."""

    kind = "store_unavailable"
    status_code = 500
