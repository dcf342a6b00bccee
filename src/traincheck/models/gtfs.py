"""Pydantic models for GTFS entities."""

from enum import IntEnum

from pydantic import BaseModel


class ExceptionType(IntEnum):
    """GTFS calendar_dates exception_type."""

    ADDED = 1
    REMOVED = 2


class Agency(BaseModel):
    """GTFS agency entity."""

    agency_id: str
    agency_name: str
    agency_url: str | None = None
    agency_timezone: str | None = None


class Route(BaseModel):
    """GTFS route entity."""

    route_id: str
    agency_id: str | None = None
    route_short_name: str | None = None
    route_long_name: str | None = None
    route_type: int  # 2=rail


class ServiceCalendar(BaseModel):
    """GTFS calendar entity for weekly service patterns."""

    service_id: str
    monday: int
    tuesday: int
    wednesday: int
    thursday: int
    friday: int
    saturday: int
    sunday: int
    start_date: str  # YYYY-MM-DD
    end_date: str  # YYYY-MM-DD


class CalendarException(BaseModel):
    """GTFS calendar_dates entity for dated service exceptions."""

    service_id: str
    date: str  # YYYY-MM-DD
    exception_type: ExceptionType


class Trip(BaseModel):
    """GTFS trip entity."""

    trip_id: str
    route_id: str
    service_id: str
