import logging
from pathlib import Path

import httpx

from traincheck.data.config import TrainCheckConfig

logger = logging.getLogger(__name__)


class FeedClient:
    """Async HTTP client for downloading static GTFS ZIP feeds.

    Usage:
        async with FeedClient(config) as client:
            path = await client.download("kml", Path("data/gtfs.zip"))
    """

    def __init__(self, config: TrainCheckConfig):
        """Initialize the client.

        Args:
            config: Configuration with feed presets and download timeout.
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "FeedClient":
        """Enter async context - create HTTP client."""
        self._client = httpx.AsyncClient(
            timeout=self._config.download_timeout_seconds, follow_redirects=True
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context - close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def resolve_url(self, source: str) -> str:
        """Map a preset name to its URL; anything else is used as given."""
        return self._config.feed_urls.get(source, source)

    async def download(self, source: str, dest: Path) -> Path:
        """Stream a GTFS ZIP to disk.

        Args:
            source: Preset name (e.g. "kml") or an http(s) URL.
            dest: File to write.

        Returns:
            The destination path.

        Raises:
            RuntimeError: If client not initialized.
            httpx.HTTPError: If the HTTP request fails.
        """
        if not self._client:
            raise RuntimeError("Client not initialized - use 'async with'")

        url = self.resolve_url(source)
        dest.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Downloading GTFS feed from {url}...")

        async with self._client.stream("GET", url) as response:
            response.raise_for_status()
            with open(dest, "wb") as f:
                async for chunk in response.aiter_bytes():
                    f.write(chunk)

        logger.info(f"Saved GTFS feed to {dest} ({dest.stat().st_size:,} bytes)")
        return dest


def is_remote_source(source: str, config: TrainCheckConfig) -> bool:
    """Whether an ingest source is a preset name or an http(s) URL."""
    return source in config.feed_urls or source.startswith(("http://", "https://"))
