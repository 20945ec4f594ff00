"""
Prompt Building (Augmentation • Local Answers • Images → LangChain Messages)
===========================================================================

Purpose
-------
Utilities that turn a user message and its conversation into what the model
actually receives, plus the answers that never reach the model at all.

Key Functions
-------------
- PromptAugmenter          : Wrap a question with date grounding, a code-mode
                             instruction and optional web search context.
- current_datetime_answer  : Local answer for "what is the date/time" questions.
- format_news_digest       : Numbered headline digest for news questions.
- ImageLoader              : Read image attachments from the public directory
                             (concurrently) and base64-encode them.
- normalize_mime           : Keep only supported 'image/<subtype>' MIME types.
- to_data_url              : Base64 payload → ``data:`` URL for inline images.
- annotate_with_attachments: Append "Attachments: a, b" to a turn's text.
- build_history_messages   : Conversation turns → HumanMessage/AIMessage list.
- build_image_message      : Text + images → one multimodal HumanMessage.

Dependencies
------------
LangChain core messages; zoneinfo for the display timezone.
"""

import asyncio
import base64
import logging
from datetime import datetime, timezone, tzinfo
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Callable, Iterable
from zoneinfo import ZoneInfo

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from chatbot_backend.api.models import Attachment, FeatureOptions, ImagePayload, NewsItem, SearchResult, Turn
from chatbot_backend.api.query_classifier import needs_current_info
from chatbot_backend.api.web_search import WebSearchProvider
from chatbot_backend.database.config.config import settings

logger = logging.getLogger(__name__)

SEARCH_CONTEXT_LIMIT = 4
DEFAULT_IMAGE_PROMPT = "Describe this."

DATE_GROUNDING_TEMPLATE = "Current date/time: {now}. This is authoritative. Never claim a different date or year."
CODE_MODE_INSTRUCTION = (
    "Code mode is ON. Give practical, correct code-focused answers. "
    "Use short explanation + clean code blocks. Mention assumptions when needed."
)
SEARCH_CONTEXT_HEADER = "Web search context (use when relevant, do not fabricate beyond these):\n"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _resolve_tz(tz) -> tzinfo:
    if tz is None:
        return ZoneInfo(settings.DISPLAY_TIMEZONE)
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def format_utc_iso(now: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a ``Z`` suffix, e.g. ``2025-01-31T09:15:00.123Z``."""
    utc = now.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def _long_date(local: datetime) -> str:
    return local.strftime("%A, %d %B %Y")


def _clock_time(local: datetime) -> str:
    return local.strftime("%I:%M %p").lower()


def current_datetime_answer(now: datetime | None = None, tz=None) -> str:
    """
    Deterministic answer to a date/time question, rendered in the display timezone.

    Example: ``Aaj ki date Friday, 31 January 2025 hai. Current time 02:45 pm (IST) hai.``
    """
    local = (now or _utcnow()).astimezone(_resolve_tz(tz))
    return f"Aaj ki date {_long_date(local)} hai. Current time {_clock_time(local)} ({local.tzname()}) hai."


def _format_published(raw: str, zone: tzinfo) -> str:
    if not raw:
        return "Unknown time"
    try:
        published = parsedate_to_datetime(raw)
    except (TypeError, ValueError):
        return raw
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    return published.astimezone(zone).strftime("%d %b, %I:%M %p").replace("AM", "am").replace("PM", "pm")


def format_news_digest(items: list[NewsItem], now: datetime | None = None, tz=None) -> str:
    """
    Render headlines as a numbered digest.

    Publication times are shown in the display timezone; unparseable dates are
    shown verbatim and missing ones as ``Unknown time``.
    """
    zone = _resolve_tz(tz)
    local = (now or _utcnow()).astimezone(zone)
    lines = []
    for index, item in enumerate(items, start=1):
        source = f" ({item.source})" if item.source else ""
        lines.append(
            f"{index}. {item.title}{source}\n"
            f"   Published: {_format_published(item.published_at, zone)}\n"
            f"   Link: {item.link}"
        )
    return f"Today's date is {_long_date(local)} ({local.tzname()}).\n\nLatest headlines:\n" + "\n\n".join(lines)


def format_search_context(results: list[SearchResult]) -> str:
    entries = [
        f"{index}. {result.title}\nSnippet: {result.snippet}\nURL: {result.url}"
        for index, result in enumerate(results, start=1)
    ]
    return SEARCH_CONTEXT_HEADER + "\n\n".join(entries)


class PromptAugmenter:
    """
    Builds the augmented prompt sent in place of the raw user text.

    Parameters
    ----------
    web_search : WebSearchProvider
        Used only when web search is enabled and the text looks time-sensitive.
    clock : callable, optional
        Returns the current (tz-aware) datetime; injectable for tests.
    """

    def __init__(self, web_search: WebSearchProvider, clock: Callable[[], datetime] = _utcnow):
        self.web_search = web_search
        self.clock = clock

    async def build_prompt(self, content: str, features: FeatureOptions) -> str:
        blocks = []
        if features.date_grounding:
            blocks.append(DATE_GROUNDING_TEMPLATE.format(now=format_utc_iso(self.clock())))
        if features.code_mode:
            blocks.append(CODE_MODE_INSTRUCTION)
        if features.web_search and needs_current_info(content):
            results = await self.web_search.search(content, SEARCH_CONTEXT_LIMIT)
            if results:
                blocks.append(format_search_context(results))
        blocks.append(f"User question:\n{content}")
        return "\n\n".join(blocks)


def normalize_mime(mt: str) -> str:
    """
    Keep only 'image/<subtype>' and map oddities (jpg -> jpeg).
    Strip any extra parameters after ';'.
    """
    if not mt:
        return "image/png"
    core = mt.split(";")[0].strip().lower()
    if core == "image/jpg":
        core = "image/jpeg"
    allowed = {"image/png", "image/jpeg", "image/webp", "image/gif", "image/heic", "image/heif"}
    return core if core in allowed else "image/png"


def to_data_url(image: ImagePayload) -> str:
    """Return ``data:{mime};base64,{data}`` for an encoded image."""
    return f"data:{normalize_mime(image.mime_type)};base64,{image.data}"


class ImageLoader:
    """
    Reads image attachments from the public directory.

    Attachment URLs such as ``/uploads/x.png`` are resolved relative to
    `public_dir`. URLs that escape the directory and files that cannot be read
    are skipped.
    """

    def __init__(self, public_dir: str | Path | None = None):
        self.public_dir = Path(public_dir or settings.PUBLIC_DIR).resolve()

    def resolve(self, attachment: Attachment) -> Path | None:
        candidate = (self.public_dir / attachment.url.lstrip("/")).resolve()
        if not candidate.is_relative_to(self.public_dir):
            logger.warning("Attachment url outside the public directory: %s", attachment.url)
            return None
        return candidate

    def _read(self, attachment: Attachment) -> ImagePayload | None:
        try:
            path = self.resolve(attachment)
            if path is None:
                return None
            data = path.read_bytes()
        # ValueError: paths with embedded NUL bytes
        except (OSError, ValueError) as e:
            logger.debug("Skipping unreadable attachment %s: %s", attachment.url, e)
            return None
        return ImagePayload(data=base64.b64encode(data).decode("utf-8"), mime_type=attachment.mime_type)

    async def load(self, attachments: Iterable[Attachment]) -> list[ImagePayload]:
        """Read every image attachment concurrently, keeping attachment order."""
        images = [a for a in attachments if a.is_image]
        if not images:
            return []
        loaded = await asyncio.gather(*(asyncio.to_thread(self._read, a) for a in images))
        return [image for image in loaded if image is not None]


def annotate_with_attachments(turn: Turn) -> str:
    if not turn.attachments:
        return turn.content
    names = ", ".join(a.original_name for a in turn.attachments)
    return f"{turn.content}\n\nAttachments: {names}".strip()


def build_history_messages(turns: list[Turn], last_content: str | None = None) -> list[BaseMessage]:
    """
    Convert conversation turns into LangChain messages.

    Earlier turns carry their stored text plus an attachment annotation.
    When `last_content` is given it replaces the text of the final turn
    (the augmented prompt for the message being answered).
    """
    messages: list[BaseMessage] = []
    for index, turn in enumerate(turns):
        is_last = index == len(turns) - 1
        text = last_content if is_last and last_content is not None else annotate_with_attachments(turn)
        if turn.role == "user":
            messages.append(HumanMessage(content=text))
        else:
            messages.append(AIMessage(content=text))
    return messages


def build_image_message(prompt_text: str, images: list[ImagePayload]) -> list[HumanMessage]:
    """
    Build a chat message (LangChain HumanMessage) holding text and inline images.

    The text part comes first when non-empty, followed by one ``image_url`` part
    per image. With neither, a single "Describe this." text part is sent.

    Returns
    -------
    list[HumanMessage]
        A one-element message list ready for ``ainvoke``.
    """
    parts = []
    if prompt_text:
        parts.append({'type': 'text', 'text': prompt_text})
    for image in images:
        parts.append({'type': 'image_url', 'image_url': {"url": to_data_url(image)}})
    if not parts:
        parts.append({'type': 'text', 'text': DEFAULT_IMAGE_PROMPT})
    return [HumanMessage(content=parts)]
