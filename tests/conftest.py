from collections.abc import Callable

import pytest

RSS_HEADERS = {"Content-Type": "application/rss+xml; charset=utf-8"}


def build_rss(entries: list[dict[str, str]]) -> str:
    items = []
    for entry in entries:
        parts = [f"<title>{entry.get('title', '')}</title>"]
        parts.append(f"<link>{entry.get('link', '')}</link>")
        if "description" in entry:
            parts.append(f"<description>{entry['description']}</description>")
        if "pubDate" in entry:
            parts.append(f"<pubDate>{entry['pubDate']}</pubDate>")
        items.append("<item>" + "".join(parts) + "</item>")
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<rss version="2.0"><channel><title>Fixture feed</title>'
        + "".join(items)
        + "</channel></rss>"
    )


@pytest.fixture
def rss_feed() -> Callable[[list[dict[str, str]]], str]:
    return build_rss
