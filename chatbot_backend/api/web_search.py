"""
Web search via the DuckDuckGo Instant Answer API
================================================

Purpose
-------
Fetches a handful of short results (title, snippet, url) used as grounding
context in the augmented prompt.

Result order
------------
1. The abstract, when the API returns both ``AbstractText`` and ``AbstractURL``
   (title is ``Heading``, or ``"Result"`` when missing).
2. ``RelatedTopics`` flattened depth-first: a topic group (non-empty
   ``Topics``) is replaced by its own flattened children.

Failure policy
--------------
Search is best-effort: HTTP errors, timeouts and malformed payloads are logged
and yield an empty list. Nothing is retried.
"""

import logging

import httpx

from chatbot_backend.api.models import SearchResult
from chatbot_backend.database.config.config import settings

logger = logging.getLogger(__name__)

DEFAULT_RESULT_LIMIT = 5


def flatten_topics(topics: list) -> list[dict]:
    """Depth-first flattening of DuckDuckGo ``RelatedTopics``."""
    flat = []
    for topic in topics or []:
        if not isinstance(topic, dict):
            continue
        children = topic.get("Topics")
        if isinstance(children, list) and children:
            flat.extend(flatten_topics(children))
        else:
            flat.append(topic)
    return flat


def split_topic_text(text: str) -> tuple[str, str]:
    """
    Split ``"Title - snippet"`` on the first separator.

    Returns
    -------
    tuple[str, str]
        (title, snippet), both trimmed. The title is ``"Result"`` when there is
        no separator or nothing before it; without a separator the snippet is
        the whole text.
    """
    title, sep, snippet = text.partition(" - ")
    if not sep:
        return "Result", text
    return title.strip() or "Result", snippet.strip()


def parse_instant_answer(payload: dict, limit: int) -> list[SearchResult]:
    results: list[SearchResult] = []
    abstract_text = payload.get("AbstractText")
    abstract_url = payload.get("AbstractURL")
    if abstract_text and abstract_url:
        results.append(SearchResult(
            title=payload.get("Heading") or "Result",
            snippet=abstract_text,
            url=abstract_url,
        ))

    for topic in flatten_topics(payload.get("RelatedTopics") or []):
        if len(results) >= limit:
            break
        text = topic.get("Text")
        url = topic.get("FirstURL")
        if not text or not url:
            continue
        title, snippet = split_topic_text(text)
        results.append(SearchResult(title=title, snippet=snippet, url=url))

    return results[:limit]


class WebSearchProvider:
    """
    Thin async client for the instant answer endpoint.

    Parameters
    ----------
    client : httpx.AsyncClient
        Shared HTTP client (owns timeouts and connection pooling).
    endpoint : str | None
        Override for ``settings.WEB_SEARCH_URL``.
    """

    def __init__(self, client: httpx.AsyncClient, endpoint: str | None = None):
        self.client = client
        self.endpoint = endpoint or settings.WEB_SEARCH_URL

    async def search(self, query: str, limit: int = DEFAULT_RESULT_LIMIT) -> list[SearchResult]:
        """
        Search the web and return at most `limit` results. Never raises.
        """
        if not query or not query.strip() or limit <= 0:
            return []

        params = {
            "q": query.strip(),
            "format": "json",
            "no_html": "1",
            "skip_disambig": "1",
            "no_redirect": "1",
        }
        try:
            response = await self.client.get(self.endpoint, params=params)
            response.raise_for_status()
            payload = response.json()
            if not isinstance(payload, dict):
                raise ValueError("Unexpected instant answer payload")
            return parse_instant_answer(payload, limit)
        except Exception as e:
            logger.warning("Web search failed: %s", e)
            return []
