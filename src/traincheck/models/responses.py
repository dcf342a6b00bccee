from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Structured error returned instead of a result."""

    kind: str = Field(description="invalid_input, not_found, conflict or store_unavailable")
    message: str
    status_code: int = Field(description="HTTP-style status classification")


# Timetable queries


class Departure(BaseModel):
    trip_id: str
    route_id: str
    route_long_name: str | None = None
    route_short_name: str | None = None
    departure_time: str = Field(description="Scheduled departure in HH:MM:SS format")
    departure_time_formatted: str = Field(description="Display time (e.g., '00:15 (+1)')")
    destination: str | None = Field(default=None, description="Last stop of the trip")
    intermediate_stops: list[str] = Field(
        default_factory=list, description="Stops between this station and the destination"
    )


class Arrival(BaseModel):
    trip_id: str
    route_id: str
    route_long_name: str | None = None
    route_short_name: str | None = None
    arrival_time: str = Field(description="Scheduled arrival in HH:MM:SS format")
    arrival_time_formatted: str
    origin: str | None = Field(default=None, description="First stop of the trip")
    intermediate_stops: list[str] = Field(
        default_factory=list, description="Stops between the origin and this station"
    )


class Connection(BaseModel):
    """A single trip serving both stations, start before end."""

    trip_id: str
    route_id: str
    route_long_name: str | None = None
    route_short_name: str | None = None
    departure_date: str = Field(description="Service date in YYYY-MM-DD format")
    departure_time: str = Field(description="HH:MM:SS at the start station")
    departure_time_formatted: str
    arrival_time: str = Field(description="HH:MM:SS at the end station")
    arrival_time_formatted: str
    travel_time: str = Field(description="Travel duration in HH:MM:SS format")
    travel_minutes: int
    destination: str | None = Field(default=None, description="Last stop of the trip")
    intermediate_stops: list[str] = Field(
        default_factory=list, description="Stops between start and end station"
    )


class DeparturesResponse(BaseModel):
    station: str
    departures: list[Departure] = Field(default_factory=list)
    service_date: str | None = Field(default=None, description="YYYY-MM-DD")
    query_time: str | None = Field(default=None, description="HH:MM:SS")
    count: int = 0
    success: bool = True
    error: ErrorDetail | None = None


class ArrivalsResponse(BaseModel):
    station: str
    arrivals: list[Arrival] = Field(default_factory=list)
    service_date: str | None = Field(default=None, description="YYYY-MM-DD")
    query_time: str | None = Field(default=None, description="HH:MM:SS")
    count: int = 0
    success: bool = True
    error: ErrorDetail | None = None


class ConnectionsResponse(BaseModel):
    start_station: str
    end_station: str
    connections: list[Connection] = Field(default_factory=list)
    service_date: str | None = Field(default=None, description="YYYY-MM-DD")
    query_time: str | None = Field(default=None, description="HH:MM:SS")
    count: int = 0
    message: str | None = None
    success: bool = True
    error: ErrorDetail | None = None


class StopNamesResponse(BaseModel):
    names: list[str] = Field(default_factory=list)
    count: int = 0
    success: bool = True
    error: ErrorDetail | None = None


class StationSuggestion(BaseModel):
    stop_name: str
    score: float = Field(description="Match score (0-100)")


class SuggestStationsResponse(BaseModel):
    query: str
    suggestions: list[StationSuggestion] = Field(default_factory=list)
    success: bool = True
    error: ErrorDetail | None = None


# Custom trips


class CustomTripResult(BaseModel):
    route_id: str
    route_long_name: str
    trip_id: str
    service_id: str
    date: str = Field(description="Service date in YYYY-MM-DD format")
    start_stop_id: str
    end_stop_id: str
    departure_time: str = Field(description="HH:MM:SS")
    arrival_time: str = Field(description="HH:MM:SS")


class CreateCustomTripResponse(BaseModel):
    trip: CustomTripResult | None = None
    message: str | None = None
    success: bool = True
    error: ErrorDetail | None = None


# Statistics


class StopUsage(BaseModel):
    stop_name: str
    usage_count: int


class AgencyActivity(BaseModel):
    agency_id: str
    agency_name: str
    trip_count: int


class RouteTripCount(BaseModel):
    route_id: str
    route_long_name: str | None = None
    trip_count: int


class TopStopsResponse(BaseModel):
    stops: list[StopUsage] = Field(default_factory=list)
    count: int = 0
    success: bool = True
    error: ErrorDetail | None = None


class AgencyActivityResponse(BaseModel):
    agencies: list[AgencyActivity] = Field(default_factory=list)
    count: int = 0
    success: bool = True
    error: ErrorDetail | None = None


class RouteTripCountsResponse(BaseModel):
    routes: list[RouteTripCount] = Field(default_factory=list)
    count: int = 0
    success: bool = True
    error: ErrorDetail | None = None
