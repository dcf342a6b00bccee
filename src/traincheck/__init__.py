"""TrainCheck: train timetable queries over GTFS data."""

__version__ = "0.1.0"
