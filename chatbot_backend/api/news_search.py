"""
Latest headlines from the Google News RSS search feed.

The feed is queried for the Indian English edition (``hl=en-IN``, ``gl=IN``,
``ceid=IN:en``). Each ``<item>`` block is read on its own: tag text is taken
out of any CDATA section, then the five predefined XML entities are decoded
and whitespace is trimmed. A malformed item therefore never spoils the rest
of the feed. Publisher names are taken from the trailing ``" - Publisher"``
segment that Google appends to each headline.

Any failure (HTTP error, timeout) is logged and yields an empty list so
callers can fall back to a normal model answer.
"""

import logging
import re

import httpx

from chatbot_backend.api.models import NewsItem
from chatbot_backend.database.config.config import settings

logger = logging.getLogger(__name__)

DEFAULT_NEWS_LIMIT = 6
DEFAULT_NEWS_QUERY = "latest news"
FEED_HEADERS = {"Accept": "application/rss+xml, application/xml, text/xml"}

ITEM_PATTERN = re.compile(r"<item>[\s\S]*?</item>", re.IGNORECASE)
CDATA_PATTERN = re.compile(r"<!\[CDATA\[([\s\S]*?)\]\]>")

# Applied in order, so "&amp;lt;" ends up as "<"
XML_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)


def decode_xml(text: str) -> str:
    for entity, char in XML_ENTITIES:
        text = text.replace(entity, char)
    return text.strip()


def extract_tag(block: str, tag: str) -> str:
    """Text of the first ``<tag>`` in `block`, CDATA unwrapped and entities decoded."""
    match = re.search(rf"<{tag}>([\s\S]*?)</{tag}>", block, re.IGNORECASE)
    if not match:
        return ""
    return decode_xml(CDATA_PATTERN.sub(r"\1", match.group(1)))


def extract_source(title: str) -> str:
    parts = title.split(" - ")
    if len(parts) < 2:
        return ""
    return parts[-1].strip()


def parse_feed(xml_text: str, limit: int) -> list[NewsItem]:
    """
    Parse an RSS document into news items.

    Only the first `limit` ``<item>`` blocks are considered; those lacking a
    title or a link are dropped afterwards, so fewer than `limit` items may be
    returned even when the feed holds more.
    """
    items = []
    for block in ITEM_PATTERN.findall(xml_text)[:limit]:
        title = extract_tag(block, "title")
        link = extract_tag(block, "link")
        if not title or not link:
            continue
        items.append(NewsItem(
            title=title,
            link=link,
            published_at=extract_tag(block, "pubDate"),
            source=extract_source(title),
        ))
    return items


class NewsProvider:
    """
    Async client for the news RSS feed.

    Parameters
    ----------
    client : httpx.AsyncClient
        Shared HTTP client.
    endpoint : str | None
        Override for ``settings.NEWS_FEED_URL``.
    """

    def __init__(self, client: httpx.AsyncClient, endpoint: str | None = None):
        self.client = client
        self.endpoint = endpoint or settings.NEWS_FEED_URL

    async def search_news(self, query: str, limit: int = DEFAULT_NEWS_LIMIT) -> list[NewsItem]:
        """Return at most `limit` headlines for `query`. Never raises."""
        if limit <= 0:
            return []
        params = {
            "q": (query or "").strip() or DEFAULT_NEWS_QUERY,
            "hl": "en-IN",
            "gl": "IN",
            "ceid": "IN:en",
        }
        try:
            response = await self.client.get(self.endpoint, params=params, headers=FEED_HEADERS)
            response.raise_for_status()
            return parse_feed(response.text, limit)
        except Exception as e:
            logger.warning("News search failed: %s", e)
            return []
