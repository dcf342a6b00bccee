"""Database connection helpers for the GTFS SQLite database."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from traincheck.data.config import get_config
from traincheck.data.store import TimetableStore
from traincheck.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


def get_db_path() -> Path:
    """Get the database path from configuration."""
    return get_config().db_path


@asynccontextmanager
async def get_db(db_path: Path | None = None) -> AsyncIterator[aiosqlite.Connection]:
    """Async context manager for DB connections with Row factory.

    Args:
        db_path: Optional path to the database. If not provided, uses
                 TRAINCHECK_DB_PATH or defaults to 'data/gtfs.db'.

    Yields:
        aiosqlite.Connection configured with Row factory for dict-like access.

    Raises:
        FileNotFoundError: If the database file doesn't exist.
    """
    if db_path is None:
        db_path = get_db_path()

    if not db_path.exists():
        raise FileNotFoundError(
            f"Database not found at {db_path}. Run 'traincheck ingest <gtfs_path>' to create it."
        )

    async with aiosqlite.connect(db_path) as db:
        db.row_factory = aiosqlite.Row
        yield db


@asynccontextmanager
async def open_store(db_path: Path | None = None) -> AsyncIterator[TimetableStore]:
    """Open a TimetableStore over a fresh connection.

    Raises:
        StoreUnavailableError: If the database is missing or cannot be opened.
    """
    try:
        async with get_db(db_path) as db:
            yield TimetableStore(db)
    except FileNotFoundError as e:
        logger.error(str(e))
        raise StoreUnavailableError("Timetable database is not available") from e
    except aiosqlite.Error as e:
        logger.error(f"Failed to open timetable database: {e}")
        raise StoreUnavailableError("Timetable database is not available") from e
