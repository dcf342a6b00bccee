from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrainCheckConfig(BaseSettings):
    """Configuration for the timetable store, query limits and custom trips.

    Automatically loads from environment variables and .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    db_path: Path = Field(default=Path("data/gtfs.db"), alias="TRAINCHECK_DB_PATH")

    # Query limits
    default_limit: int = Field(default=10, alias="TRAINCHECK_DEFAULT_LIMIT")
    max_limit: int = 50  # fixed cap shared with the tool wrappers
    max_stats_limit: int = 100

    # Synthetic agency/route used by admin-created trips
    custom_agency_id: str = "custom"
    custom_agency_name: str = "custom"
    custom_agency_url: str = "custom"
    custom_agency_timezone: str = Field(
        default="Europe/Warsaw", alias="TRAINCHECK_TIMEZONE"
    )
    custom_route_short_name: str = "custom"
    custom_route_type: int = 2  # GTFS rail

    # GTFS feed presets for `traincheck ingest <name>`
    feed_urls: dict[str, str] = {
        "kml": "https://www.kolejemalopolskie.com.pl/rozklady_jazdy/kml-ska-gtfs.zip",
        "pr": "https://mkuran.pl/gtfs/polregio.zip",
    }
    download_timeout_seconds: float = Field(default=60.0, alias="TRAINCHECK_DOWNLOAD_TIMEOUT")


@lru_cache
def get_config() -> TrainCheckConfig:
    """Get TrainCheck configuration (cached singleton).

    Returns:
        TrainCheckConfig with values from .env file or environment variables.
    """
    return TrainCheckConfig()
