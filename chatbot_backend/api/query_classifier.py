"""
Query classification
====================

Decides which answer strategy a user message gets. Classification is a pure
function of the text, the per-message feature switches and whether the message
carries attachments:

- ``DATE_TIME``: the user asks for today's date or the time (English or
  transliterated Hindi); answered locally without any upstream call.
- ``NEWS``: the user asks for headlines; answered from the news feed.
- ``PLAIN``: everything else, answered by the model.

Date/time is checked first, so "today news" is a date question when date
grounding is on.
"""

import re
from enum import Enum

from chatbot_backend.api.models import FeatureOptions

DATE_TIME_PATTERN = re.compile(r"\b(today|date|time|current date|current time|what date|what time)\b")
HINDI_DATE_TIME_PATTERN = re.compile(r"\b(aaj|taarikh|tarikh|samay|time kya|date kya)\b")
NEWS_PATTERN = re.compile(r"\b(news|headlines|breaking|today news|latest news)\b")
CURRENT_INFO_PATTERN = re.compile(r"\b(latest|news|current|today|price|update|search|recent|who is)\b")


class QueryKind(str, Enum):
    DATE_TIME = "date_time"
    NEWS = "news"
    PLAIN = "plain"


def is_date_time_query(text: str) -> bool:
    lowered = (text or "").lower()
    return bool(DATE_TIME_PATTERN.search(lowered) or HINDI_DATE_TIME_PATTERN.search(lowered))


def is_news_query(text: str) -> bool:
    return bool(NEWS_PATTERN.search((text or "").lower()))


def needs_current_info(text: str) -> bool:
    """Heuristic: does answering this text likely need fresh information from the web?"""
    return bool(CURRENT_INFO_PATTERN.search((text or "").lower()))


def classify_query(text: str, features: FeatureOptions, has_attachments: bool) -> QueryKind:
    """
    Pick the answer strategy for a user message.

    Parameters
    ----------
    text : str
        The raw message content.
    features : FeatureOptions
        Per-message switches; date grounding gates DATE_TIME, web search gates NEWS.
    has_attachments : bool
        Messages with attachments are always PLAIN.

    Returns
    -------
    QueryKind
    """
    if has_attachments:
        return QueryKind.PLAIN
    if features.date_grounding and is_date_time_query(text):
        return QueryKind.DATE_TIME
    if features.web_search and is_news_query(text):
        return QueryKind.NEWS
    return QueryKind.PLAIN
