from datetime import datetime, timezone

from starternews.models import (
    FetchError,
    FetchErrorReason,
    FetchOk,
    SourceDescriptor,
    SourceKind,
)
from starternews.services.parser import (
    AtomParser,
    JsonProviderParser,
    RssParser,
    clean_text,
    detect_language,
    get_parser,
    parse,
    source_name_for_url,
)

RSS_SOURCE = SourceDescriptor(url="https://feeds.example.com/rss", kind=SourceKind.RSS)


def _parse_rss(body: str, language: str = "en"):
    return parse(FetchOk(body=body), RSS_SOURCE, language=language, category="world")


def test_item_without_link_is_dropped(rss_feed) -> None:
    body = rss_feed(
        [
            {"title": "Headline without a link", "link": ""},
            {"title": "Complete headline", "link": "https://news.example.com/a"},
        ]
    )

    items = _parse_rss(body)

    assert len(items) == 1
    assert items[0].title == "Complete headline"
    assert items[0].url == "https://news.example.com/a"
    assert items[0].category == "world"


def test_bengali_title_is_tagged_bn(rss_feed) -> None:
    body = rss_feed(
        [
            {"title": "বাংলাদেশে বন্যা পরিস্থিতি", "link": "https://news.example.com/bn"},
            {"title": "Plain English headline", "link": "https://news.example.com/en"},
        ]
    )

    items = _parse_rss(body, language="en")

    assert [item.language for item in items] == ["bn", "en"]


def test_rss_field_fallbacks_and_cleanup() -> None:
    body = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:media="http://search.yahoo.com/mrss/"
     xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <item>
      <title><![CDATA[Rain &amp; floods   hit <b>Sylhet</b>]]></title>
      <guid>https://news.example.com/sylhet-floods</guid>
      <description></description>
      <content:encoded><![CDATA[<p>Rivers rose &quot;sharply&quot; overnight.</p>]]></content:encoded>
      <enclosure url="https://img.example.com/enclosure.jpg" type="image/jpeg"/>
      <media:content url="https://img.example.com/media.jpg" medium="image"/>
      <dc:date>2024-05-20T06:00:00+06:00</dc:date>
    </item>
  </channel>
</rss>"""

    items = _parse_rss(body)

    assert len(items) == 1
    item = items[0]
    assert item.title == "Rain & floods hit Sylhet"
    assert item.url == "https://news.example.com/sylhet-floods"
    assert item.summary == 'Rivers rose "sharply" overnight.'
    assert item.image_url == "https://img.example.com/media.jpg"
    assert item.published_at == datetime(2024, 5, 20, 0, 0, tzinfo=timezone.utc)
    assert item.source_name == "News"


def test_atom_entries_are_parsed() -> None:
    body = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Tech</title>
  <entry>
    <title>New chip announced</title>
    <link rel="self" href="https://www.theverge.com/self/1"/>
    <link rel="alternate" href="https://www.theverge.com/2024/5/20/chip"/>
    <summary type="html">&lt;p&gt;A faster chip.&lt;/p&gt;</summary>
    <updated>2024-05-20T10:00:00Z</updated>
  </entry>
  <entry>
    <title></title>
    <link href="https://www.theverge.com/untitled"/>
  </entry>
</feed>"""
    source = SourceDescriptor(url="https://www.theverge.com/rss", kind=SourceKind.ATOM)

    items = parse(FetchOk(body=body), source, language="en", category="technology")

    assert len(items) == 1
    item = items[0]
    assert item.url == "https://www.theverge.com/2024/5/20/chip"
    assert item.summary == "A faster chip."
    assert item.source_name == "The Verge"
    assert item.published_at == datetime(2024, 5, 20, 10, 0, tzinfo=timezone.utc)


def test_unrecognized_body_yields_no_items() -> None:
    assert _parse_rss("<html><body>Not a feed</body></html>") == []
    assert _parse_rss("") == []


def test_failed_fetch_yields_no_items() -> None:
    result = FetchError(FetchErrorReason.HTTP_ERROR, status_code=500)

    assert parse(result, RSS_SOURCE, language="en", category="world") == []


def test_json_newsapi_mapping_drops_missing_url() -> None:
    body = """{
      "status": "ok",
      "articles": [
        {
          "source": {"name": "BBC News"},
          "title": "Markets steady",
          "description": "Shares were flat.",
          "url": "https://www.bbc.co.uk/news/business-1",
          "urlToImage": "https://ichef.bbci.co.uk/1.jpg",
          "publishedAt": "2024-05-20T09:00:00Z"
        },
        {"title": "No link here", "url": null}
      ]
    }"""
    source = SourceDescriptor(
        url="https://newsapi.org/v2/top-headlines",
        kind=SourceKind.JSON_API,
        provider="newsapi",
    )

    items = parse(FetchOk(body=body), source, language="en", category="business")

    assert len(items) == 1
    item = items[0]
    assert item.source_name == "BBC News"
    assert item.image_url == "https://ichef.bbci.co.uk/1.jpg"
    assert item.summary == "Shares were flat."


def test_json_newsdata_mapping() -> None:
    body = """{"status": "success", "results": [
      {"title": "ঢাকায় বৃষ্টি", "link": "https://www.prothomalo.com/bangladesh/1",
       "description": "বৃষ্টি হয়েছে", "pubDate": "2024-05-20 08:00:00",
       "image_url": null, "source_id": "prothomalo"}
    ]}"""
    source = SourceDescriptor(
        url="https://newsdata.io/api/1/news",
        kind=SourceKind.JSON_API,
        provider="newsdata",
    )

    items = parse(FetchOk(body=body), source, language="en", category="bangladesh")

    assert len(items) == 1
    assert items[0].language == "bn"
    assert items[0].source_name == "prothomalo"
    assert items[0].image_url is None


def test_invalid_json_yields_no_items() -> None:
    source = SourceDescriptor(
        url="https://gnews.io/api/v4/top-headlines",
        kind=SourceKind.JSON_API,
        provider="gnews",
    )

    assert parse(FetchOk(body="{not json"), source, language="en", category="world") == []


def test_get_parser_selects_by_kind() -> None:
    assert isinstance(get_parser(SourceKind.RSS), RssParser)
    assert isinstance(get_parser(SourceKind.ATOM), AtomParser)
    assert isinstance(get_parser(SourceKind.JSON_API), JsonProviderParser)


def test_clean_text_pipeline() -> None:
    raw = "<![CDATA[  <p>Tom &amp; Jerry&#39;s\n\n <i>show</i></p> ]]>"

    assert clean_text(raw) == "Tom & Jerry's show"
    assert clean_text(None) == ""


def test_detect_language() -> None:
    assert detect_language("বাংলা", "en") == "bn"
    assert detect_language("Dhaka floods", "en") == "en"
    assert detect_language("Dhaka floods", "fr") == "fr"


def test_source_name_for_url() -> None:
    assert source_name_for_url("https://www.thedailystar.net/news/1") == "The Daily Star"
    assert source_name_for_url("https://edition.bbc.co.uk/x") == "BBC News"
    assert source_name_for_url("https://www.daily-sun.com/post/1") == "Daily Sun"
