"""Tests for the GTFS feed download client."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from traincheck.data.config import TrainCheckConfig
from traincheck.data.feed_client import FeedClient, is_remote_source

REAL_ASYNC_CLIENT = httpx.AsyncClient


@pytest.fixture
def config() -> TrainCheckConfig:
    """Create a test config with one preset."""
    return TrainCheckConfig(feed_urls={"kml": "https://example.com/kml.zip"})


def mock_client_factory(handler):
    """Build AsyncClient instances that answer from a handler instead of the network."""

    def factory(**kwargs) -> httpx.AsyncClient:
        return REAL_ASYNC_CLIENT(transport=httpx.MockTransport(handler), **kwargs)

    return factory


async def test_download_preset(config: TrainCheckConfig, tmp_path: Path):
    """Preset names resolve to their URL and the body is written to disk."""
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, content=b"PK\x03\x04zipdata")

    dest = tmp_path / "nested" / "feed.zip"
    with patch("httpx.AsyncClient", side_effect=mock_client_factory(handler)):
        async with FeedClient(config) as client:
            result = await client.download("kml", dest)

    assert result == dest
    assert dest.read_bytes() == b"PK\x03\x04zipdata"
    assert requested == ["https://example.com/kml.zip"]


async def test_download_http_error(config: TrainCheckConfig, tmp_path: Path):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    with patch("httpx.AsyncClient", side_effect=mock_client_factory(handler)):
        async with FeedClient(config) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await client.download("https://example.com/missing.zip", tmp_path / "x.zip")


async def test_client_sets_timeout(config: TrainCheckConfig):
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client_class.return_value = AsyncMock()
        async with FeedClient(config):
            pass

    mock_client_class.return_value.aclose.assert_awaited_once()

    call_kwargs = mock_client_class.call_args.kwargs
    assert call_kwargs["timeout"] == config.download_timeout_seconds
    assert call_kwargs["follow_redirects"] is True


async def test_client_requires_async_context(config: TrainCheckConfig, tmp_path: Path):
    client = FeedClient(config)

    with pytest.raises(RuntimeError, match="Client not initialized"):
        await client.download("kml", tmp_path / "feed.zip")


def test_resolve_url(config: TrainCheckConfig):
    client = FeedClient(config)
    assert client.resolve_url("kml") == "https://example.com/kml.zip"
    assert client.resolve_url("https://other.example/feed.zip") == "https://other.example/feed.zip"


def test_is_remote_source(config: TrainCheckConfig):
    assert is_remote_source("kml", config)
    assert is_remote_source("https://example.com/gtfs.zip", config)
    assert not is_remote_source("data/gtfs.zip", config)
    assert not is_remote_source("pr", config)
