import pytest
import respx

import starternews.http_client as http_client
from starternews.config import Settings
from starternews.models import FetchOk, SourceDescriptor, SourceKind
from starternews.services.fetcher import fetch_source

from .conftest import RSS_HEADERS, build_rss


def test_accept_header_per_source_kind() -> None:
    assert http_client.accept_header(SourceKind.JSON_API) == {"Accept": "application/json"}
    assert http_client.accept_header(SourceKind.ATOM)["Accept"].startswith("application/atom+xml")
    assert http_client.accept_header(SourceKind.RSS)["Accept"].startswith("application/rss+xml")


@pytest.mark.asyncio
async def test_created_client_follows_feed_redirects() -> None:
    settings = Settings(http_user_agent="starternews-test/1.0")
    source = SourceDescriptor(url="http://feeds.example.com/rss")
    body = build_rss([{"title": "Moved", "link": "https://example.com/moved"}])

    async with http_client.create_http_client(settings) as client:
        assert client.follow_redirects is True
        assert client.headers["User-Agent"] == "starternews-test/1.0"
        with respx.mock(assert_all_called=True) as mock:
            mock.get(source.url).respond(301, headers={"Location": "https://feeds.example.com/rss"})
            final = mock.get("https://feeds.example.com/rss").respond(
                200, text=body, headers=RSS_HEADERS
            )
            result = await fetch_source(client, source)

    assert isinstance(result, FetchOk)
    request = final.calls.last.request
    assert request.headers["User-Agent"] == "starternews-test/1.0"
    assert request.headers["Accept"].startswith("application/rss+xml")


@pytest.mark.asyncio
async def test_shared_client_is_reused_until_shutdown(monkeypatch) -> None:
    monkeypatch.setattr(http_client, "_client", None)

    first = await http_client.get_http_client()
    assert await http_client.get_http_client() is first

    await http_client.shutdown_http_client()
    assert first.is_closed
    assert http_client._client is None

    second = await http_client.get_http_client()
    assert second is not first
    await http_client.shutdown_http_client()
