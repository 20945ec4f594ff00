"""
Reply Generation: Model Fallback • Transient-Error Retry • Text & Vision Calls
=============================================================================

Purpose
-------
Calls the upstream chat model through LangChain, trying a list of candidate
models in order. Each candidate gets up to ``RetryPolicy.max_attempts``
attempts while the failure looks transient (network trouble, rate limits,
5xx); a non-transient failure moves on to the next candidate immediately.

Key Components
--------------
- build_model_candidates : requested model → configured default → fallbacks (deduplicated).
- is_retryable_error     : substring match of the error text against known transient markers.
- RetryPolicy            : attempt count and linear backoff.
- run_with_fallback      : the (candidate × attempt) loop, independent of the call shape.
- ReplyGenerator         : text completion over a history, and single-shot vision calls.

Configuration (settings)
------------------------
- settings.GEMINI_API_KEY    : API key for Google Generative AI.
- settings.GEMINI_MODEL_NAME : Configured default model (see `parse_model_name`).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Sequence

from langchain_core.messages import BaseMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from chatbot_backend.api.models import ImagePayload, Turn
from chatbot_backend.api.prompt_utilities import build_history_messages, build_image_message
from chatbot_backend.database.config.config import settings

logger = logging.getLogger(__name__)

FALLBACK_MODELS = (
    "gemini-2.5-flash",
    "gemini-2.0-flash",
    "gemini-1.5-flash",
    "gemini-1.5-pro",
)

RETRYABLE_ERROR_MARKERS = (
    "fetch failed",
    "network",
    "etimedout",
    "econnreset",
    "econnrefused",
    "socket hang up",
    "timed out",
    "timeout",
    "connection reset",
    "connection refused",
    "429",
    "500",
    "502",
    "503",
    "504",
)


class ReplyGenerationError(Exception):
    """Every candidate model failed."""


class UpstreamUnavailableError(ReplyGenerationError):
    """Every candidate model failed and the last failure was transient."""


class ModelConfigurationError(ReplyGenerationError):
    """The model client cannot be built (e.g. missing API key). Not retried."""


def is_retryable_error(error: BaseException) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in RETRYABLE_ERROR_MARKERS)


def build_model_candidates(model: str | None, configured: str | None = None) -> list[str]:
    """
    Ordered, de-duplicated list of model ids to try.

    Parameters
    ----------
    model : str | None
        Model requested by the conversation.
    configured : str | None
        Configured default model; defaults to ``settings.default_model``.
    """
    configured = configured if configured is not None else settings.default_model
    candidates: list[str] = []
    for value in (model, configured, *FALLBACK_MODELS):
        value = (value or "").strip()
        if value and value not in candidates:
            candidates.append(value)
    return candidates


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_seconds: float = 0.3

    def delay(self, attempt: int) -> float:
        """Wait before attempt ``attempt + 1`` (attempts are 1-based)."""
        return attempt * self.backoff_seconds


async def run_with_fallback(
    candidates: Sequence[str],
    attempt: Callable[[str], Awaitable[str]],
    policy: RetryPolicy = RetryPolicy(),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> str:
    """
    Try `attempt(candidate)` for each candidate until one succeeds.

    Transient failures are retried up to ``policy.max_attempts`` times per
    candidate with a linear backoff; any other failure abandons the candidate.
    `ModelConfigurationError` is raised straight away.

    Raises
    ------
    UpstreamUnavailableError
        Exhausted, and the last error was transient.
    ReplyGenerationError
        Exhausted otherwise (or no candidates).
    """
    last_error: Exception | None = None
    for candidate in candidates:
        for attempt_no in range(1, policy.max_attempts + 1):
            try:
                return await attempt(candidate)
            except ModelConfigurationError:
                raise
            except Exception as e:
                last_error = e
                retryable = is_retryable_error(e)
                logger.warning(
                    "Model %s failed (attempt %s/%s, retryable=%s): %s",
                    candidate, attempt_no, policy.max_attempts, retryable, e,
                )
                if not retryable or attempt_no == policy.max_attempts:
                    break
                await sleep(policy.delay(attempt_no))

    if last_error is None:
        raise ReplyGenerationError("AI service is unavailable: no model candidates configured")
    error_cls = UpstreamUnavailableError if is_retryable_error(last_error) else ReplyGenerationError
    raise error_cls(f"AI service is unavailable. Last error: {last_error}") from last_error


def lc_text_from_content(content) -> str:
    """Normalize LangChain message content to plain text.

    - If string → return as-is.
    - If list of content parts → concatenates only 'text' parts (and bare strings).
    - Else → str(content).
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            p if isinstance(p, str) else p.get("text", "")
            for p in content
            if isinstance(p, str) or (isinstance(p, dict) and p.get("type") == "text")
        )
    return str(content)


def create_chat_model(model_id: str):
    """Production model factory: a Gemini chat model via LangChain."""
    if not settings.GEMINI_API_KEY:
        raise ModelConfigurationError("GEMINI_API_KEY is not set.")
    # Retries are handled by run_with_fallback
    return ChatGoogleGenerativeAI(model=model_id, google_api_key=settings.GEMINI_API_KEY, max_retries=0)


class ReplyGenerator:
    """
    Generates model replies with candidate fallback and retries.

    Parameters
    ----------
    model_factory : callable
        ``model_id -> chat model`` exposing ``ainvoke(messages)``.
    policy : RetryPolicy
    sleep : callable
        Awaitable sleep, injectable so tests do not wait.
    """

    def __init__(
        self,
        model_factory: Callable[[str], object] = create_chat_model,
        policy: RetryPolicy = RetryPolicy(),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.model_factory = model_factory
        self.policy = policy
        self.sleep = sleep

    async def _complete(self, messages: list[BaseMessage], model: str | None) -> str:
        async def attempt(candidate: str) -> str:
            chat_model = self.model_factory(candidate)
            response = await chat_model.ainvoke(messages)
            return lc_text_from_content(response.content)

        return await run_with_fallback(build_model_candidates(model), attempt, self.policy, self.sleep)

    async def generate(self, history: Iterable[Turn], model: str | None = None, last_content: str | None = None) -> str:
        """
        Reply to a conversation.

        Parameters
        ----------
        history : Iterable[Turn]
            All turns, oldest first; the last one is the message being answered.
        model : str | None
            Preferred model id.
        last_content : str | None
            Replacement text for the last turn (the augmented prompt).
        """
        messages = build_history_messages(list(history), last_content)
        return await self._complete(messages, model)

    async def generate_with_images(self, prompt_text: str, images: list[ImagePayload], model: str | None = None) -> str:
        """Single-shot multimodal call: prompt text followed by inline images."""
        return await self._complete(build_image_message(prompt_text, images), model)
