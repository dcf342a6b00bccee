"""MCP tool registrations. Importing this package registers every tool."""

from traincheck.tools import (  # noqa: F401
    custom_trip_tools,
    stats_tools,
    stop_tools,
    timetable_tools,
)
