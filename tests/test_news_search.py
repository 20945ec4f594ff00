"""Unit tests for NewsProvider."""

import httpx
import pytest

from chatbot_backend.api.news_search import NewsProvider, extract_source, parse_feed

ENDPOINT = "https://news.test/rss/search"

FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Search results</title>
    <item>
      <title><![CDATA[Markets rally &amp; rupee gains - The Hindu]]></title>
      <link>https://news.test/a</link>
      <pubDate>Fri, 31 Jan 2025 09:15:00 GMT</pubDate>
    </item>
    <item>
      <title>Monsoon update &quot;early&quot; - Weather - NDTV</title>
      <link>https://news.test/b</link>
      <pubDate>Fri, 31 Jan 2025 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Headline without link</title>
    </item>
    <item>
      <title>No publisher headline</title>
      <link>https://news.test/d</link>
    </item>
  </channel>
</rss>
"""


def make_provider(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return NewsProvider(client, endpoint=ENDPOINT)


class TestParseFeed:
    """Test RSS parsing."""

    def test_cdata_entities_and_source(self):
        items = parse_feed(FEED, limit=6)
        assert items[0].title == "Markets rally & rupee gains - The Hindu"
        assert items[0].source == "The Hindu"
        assert items[0].published_at == "Fri, 31 Jan 2025 09:15:00 GMT"
        assert items[1].title == 'Monsoon update "early" - Weather - NDTV'
        assert items[1].source == "NDTV"

    def test_incomplete_items_dropped(self):
        items = parse_feed(FEED, limit=6)
        assert [i.link for i in items] == ["https://news.test/a", "https://news.test/b", "https://news.test/d"]
        assert items[2].source == ""
        assert items[2].published_at == ""

    def test_limit_applies_before_filtering(self):
        items = parse_feed(FEED, limit=3)
        assert len(items) == 2

    def test_broken_item_does_not_spoil_feed(self):
        feed = (
            "<rss><channel>"
            "<item><title>Tom & Jerry return - Variety</title><link>https://news.test/t</link></item>"
            "<item><title>Budget &amp;lt;preview&amp;gt; - Mint</title><link>https://news.test/m</link></item>"
            "</channel></rss>"
        )
        items = parse_feed(feed, limit=6)
        assert [(i.title, i.source) for i in items] == [
            ("Tom & Jerry return - Variety", "Variety"),
            ("Budget <preview> - Mint", "Mint"),
        ]

    def test_extract_source(self):
        assert extract_source("A - B") == "B"
        assert extract_source("no separator") == ""


class TestNewsProvider:
    """Test feed requests."""

    @pytest.mark.asyncio
    async def test_request_parameters(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, text=FEED)

        items = await make_provider(handler).search_news("cricket")
        assert seen["params"] == {"q": "cricket", "hl": "en-IN", "gl": "IN", "ceid": "IN:en"}
        assert len(items) == 3

    @pytest.mark.asyncio
    async def test_blank_query_defaults_to_latest_news(self):
        seen = {}

        def handler(request):
            seen["q"] = request.url.params["q"]
            return httpx.Response(200, text=FEED)

        await make_provider(handler).search_news("  ")
        assert seen["q"] == "latest news"

    @pytest.mark.asyncio
    async def test_http_error_returns_empty(self):
        provider = make_provider(lambda request: httpx.Response(503))
        assert await provider.search_news("cricket") == []

    @pytest.mark.asyncio
    async def test_unterminated_item_returns_empty(self):
        provider = make_provider(lambda request: httpx.Response(200, text="<rss><item>"))
        assert await provider.search_news("cricket") == []

    @pytest.mark.asyncio
    async def test_timeout_returns_empty(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert await make_provider(handler).search_news("cricket") == []
