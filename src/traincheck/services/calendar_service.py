"""Service calendar resolution.

A service is active on a date when its weekly pattern covers the date or an
ADD exception exists for it, and no REMOVE exception exists for it. REMOVE
always wins.
"""

from collections.abc import Iterable
from datetime import date

from traincheck.data.store import TimetableStore
from traincheck.models.gtfs import CalendarException, ExceptionType, ServiceCalendar

# GTFS weekday columns indexed by weekday number (1=Sunday, 7=Saturday)
WEEKDAY_COLUMNS = {
    1: "sunday",
    2: "monday",
    3: "tuesday",
    4: "wednesday",
    5: "thursday",
    6: "friday",
    7: "saturday",
}


def gtfs_weekday(d: date) -> int:
    """Weekday number of a date with 1=Sunday through 7=Saturday."""
    return d.isoweekday() % 7 + 1


def weekday_column(d: date) -> str:
    """Name of the calendar column holding the weekly flag for a date."""
    return WEEKDAY_COLUMNS[gtfs_weekday(d)]


def runs_on_weekly_pattern(calendar: ServiceCalendar, on_date: date) -> bool:
    """Whether the base weekly pattern alone covers a date."""
    iso = on_date.isoformat()
    if not calendar.start_date <= iso <= calendar.end_date:
        return False
    return int(getattr(calendar, weekday_column(on_date))) == 1


def is_service_active(
    calendar: ServiceCalendar | None,
    exceptions: Iterable[CalendarException],
    on_date: date,
) -> bool:
    """Decide whether a single service runs on a date.

    Args:
        calendar: The service's weekly pattern, or None if it has none.
        exceptions: Exceptions for this service (other dates are ignored).
        on_date: Date to check.

    Returns:
        True if the service is active on the date.
    """
    iso = on_date.isoformat()
    types = {e.exception_type for e in exceptions if e.date == iso}

    if ExceptionType.REMOVED in types:
        return False
    if ExceptionType.ADDED in types:
        return True
    return calendar is not None and runs_on_weekly_pattern(calendar, on_date)


def apply_exceptions(
    base_services: set[str],
    exceptions: Iterable[tuple[str, int]],
) -> set[str]:
    """Apply one date's (service_id, exception_type) pairs to a base set.

    Adds are applied before removals so a REMOVE dominates an ADD for the
    same service regardless of row order.
    """
    added: set[str] = set()
    removed: set[str] = set()
    for service_id, exception_type in exceptions:
        if int(exception_type) == ExceptionType.REMOVED:
            removed.add(service_id)
        elif int(exception_type) == ExceptionType.ADDED:
            added.add(service_id)

    return (base_services | added) - removed


async def get_active_service_ids(store: TimetableStore, on_date: date) -> set[str]:
    """Get every service id active on a date.

    Args:
        store: Timetable store.
        on_date: Date to check for active services.

    Returns:
        Set of active service IDs.
    """
    base_services = await store.fetch_weekly_service_ids(on_date.isoformat(), weekday_column(on_date))
    exceptions = await store.fetch_exceptions_on(on_date.isoformat())
    return apply_exceptions(base_services, exceptions)


async def service_is_active(store: TimetableStore, service_id: str, on_date: date) -> bool:
    """Check whether one service runs on a date.

    A service with no calendar row and no exceptions is never active.
    """
    calendar = await store.fetch_service_calendar(service_id)
    exceptions = await store.fetch_service_exceptions(service_id, on_date.isoformat())
    return is_service_active(calendar, exceptions, on_date)
