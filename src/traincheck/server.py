import argparse
import asyncio
import logging
import tempfile
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel

from traincheck.app import mcp
from traincheck.data.config import get_config


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str


@mcp.tool()
def health() -> HealthResponse:
    """Check if the TrainCheck MCP server is running and healthy.

    Returns the server status, version, and current timestamp.
    """
    from traincheck import __version__

    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
    )


def _print_counts(title: str, counts: dict[str, int]) -> None:
    print(f"\n{title}")
    for table, count in counts.items():
        print(f"  {table}: {count:,}")


async def run_ingest(source: str, db_path: Path) -> dict[str, int]:
    """Ingest a GTFS feed from a local path, a URL or a preset name."""
    from traincheck.data.feed_client import FeedClient, is_remote_source
    from traincheck.data.gtfs_loader import GTFSLoader

    config = get_config()
    loader = GTFSLoader(db_path)

    if not is_remote_source(source, config):
        row_counts = await loader.ingest(Path(source))
    else:
        with tempfile.TemporaryDirectory() as tmp_dir:
            archive = Path(tmp_dir) / "gtfs.zip"
            async with FeedClient(config) as client:
                await client.download(source, archive)
            row_counts = await loader.ingest(archive)

    _print_counts("Ingestion complete. Row counts:", row_counts)
    return row_counts


async def run_init(db_path: Path) -> None:
    """Create an empty database with the timetable schema."""
    from traincheck.data.gtfs_loader import get_table_counts, init_db

    await init_db(db_path)
    _print_counts("Database ready. Row counts:", await get_table_counts(db_path))


async def run_truncate(db_path: Path) -> dict[str, int]:
    """Delete all timetable rows, keeping the schema."""
    from traincheck.data.gtfs_loader import truncate_tables

    if not db_path.exists():
        raise FileNotFoundError(f"Database not found at {db_path}")

    deleted = await truncate_tables(db_path)
    _print_counts("Truncate complete. Rows deleted:", deleted)
    return deleted


def _add_common_arguments(parser: argparse.ArgumentParser, default_db: Path) -> None:
    parser.add_argument(
        "--db",
        type=Path,
        default=default_db,
        help="SQLite database path (default: data/gtfs.db or TRAINCHECK_DB_PATH env var)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def main() -> None:
    config = get_config()

    parser = argparse.ArgumentParser(
        prog="traincheck",
        description="TrainCheck rail timetable MCP server",
    )
    subparsers = parser.add_subparsers(dest="command")

    # ingest command
    ingest_parser = subparsers.add_parser(
        "ingest",
        help="Ingest GTFS data into SQLite database",
    )
    ingest_parser.add_argument(
        "source",
        help=(
            "GTFS directory or ZIP file, an http(s) URL, or a feed preset "
            f"({', '.join(sorted(config.feed_urls))})"
        ),
    )
    _add_common_arguments(ingest_parser, config.db_path)

    # init command
    init_parser = subparsers.add_parser(
        "init",
        help="Create an empty database with the timetable schema",
    )
    _add_common_arguments(init_parser, config.db_path)

    # truncate command
    truncate_parser = subparsers.add_parser(
        "truncate",
        help="Delete all timetable rows (schema is kept)",
    )
    _add_common_arguments(truncate_parser, config.db_path)

    args = parser.parse_args()

    if args.command is None:
        # Default: run MCP server
        import traincheck.tools  # noqa: F401  (registers tools)

        mcp.run()
        return

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "ingest":
        asyncio.run(run_ingest(args.source, args.db))
    elif args.command == "init":
        asyncio.run(run_init(args.db))
    elif args.command == "truncate":
        asyncio.run(run_truncate(args.db))


if __name__ == "__main__":
    main()
