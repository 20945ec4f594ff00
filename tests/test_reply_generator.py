"""Unit tests for model fallback, retries and reply generation."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage

from chatbot_backend.api.models import ImagePayload, Turn
from chatbot_backend.api.reply_generator import (
    ModelConfigurationError,
    ReplyGenerationError,
    ReplyGenerator,
    RetryPolicy,
    UpstreamUnavailableError,
    build_model_candidates,
    is_retryable_error,
    lc_text_from_content,
    run_with_fallback,
)


class FakeAttempt:
    """Records calls and replays scripted outcomes per candidate."""

    def __init__(self, outcomes):
        self.outcomes = {k: list(v) for k, v in outcomes.items()}
        self.calls = []

    async def __call__(self, candidate):
        self.calls.append(candidate)
        outcome = self.outcomes[candidate].pop(0) if self.outcomes.get(candidate) else RuntimeError("bad request")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class TestCandidates:
    """Test candidate list construction."""

    def test_dedup_preserves_first_seen_order(self):
        assert build_model_candidates("gemini-2.0-flash", "gemini-2.5-pro") == [
            "gemini-2.0-flash",
            "gemini-2.5-pro",
            "gemini-2.5-flash",
            "gemini-1.5-flash",
            "gemini-1.5-pro",
        ]

    def test_blank_values_dropped(self):
        assert build_model_candidates("", "gemini-2.5-flash") == [
            "gemini-2.5-flash",
            "gemini-2.0-flash",
            "gemini-1.5-flash",
            "gemini-1.5-pro",
        ]

    @pytest.mark.parametrize("message", ["fetch failed", "HTTP 503 Service Unavailable", "Read timed out",
                                         "ECONNRESET", "429 Too Many Requests"])
    def test_retryable(self, message):
        assert is_retryable_error(RuntimeError(message))

    def test_not_retryable(self):
        assert not is_retryable_error(ValueError("400 invalid argument"))


class TestRunWithFallback:
    """Test the candidate × attempt loop."""

    @pytest.mark.asyncio
    async def test_first_success_returns_immediately(self):
        attempt = FakeAttempt({"a": ["hello"]})
        sleep = AsyncMock()
        assert await run_with_fallback(["a", "b"], attempt, RetryPolicy(), sleep) == "hello"
        assert attempt.calls == ["a"]
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transient_error_retried_with_backoff(self):
        attempt = FakeAttempt({"a": [RuntimeError("503 unavailable"), RuntimeError("network down"), "ok"]})
        sleep = AsyncMock()
        assert await run_with_fallback(["a"], attempt, RetryPolicy(), sleep) == "ok"
        assert attempt.calls == ["a", "a", "a"]
        assert [c.args[0] for c in sleep.await_args_list] == pytest.approx([0.3, 0.6])

    @pytest.mark.asyncio
    async def test_non_transient_error_moves_to_next_candidate(self):
        attempt = FakeAttempt({"a": [ValueError("model not found")], "b": ["from b"]})
        sleep = AsyncMock()
        assert await run_with_fallback(["a", "b"], attempt, RetryPolicy(), sleep) == "from b"
        assert attempt.calls == ["a", "b"]
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_persistent_transient_failure_exhausts_every_candidate(self):
        transient = [RuntimeError("503")] * 3
        attempt = FakeAttempt({"a": transient, "b": list(transient)})
        sleep = AsyncMock()

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            await run_with_fallback(["a", "b"], attempt, RetryPolicy(), sleep)

        assert attempt.calls == ["a", "a", "a", "b", "b", "b"]
        assert sleep.await_count == 4
        assert "503" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_last_error_non_transient_raises_generation_error(self):
        attempt = FakeAttempt({"a": [RuntimeError("503")] * 3, "b": [ValueError("invalid api key")]})
        with pytest.raises(ReplyGenerationError) as exc_info:
            await run_with_fallback(["a", "b"], attempt, RetryPolicy(), AsyncMock())
        assert not isinstance(exc_info.value, UpstreamUnavailableError)
        assert "invalid api key" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_configuration_error_is_not_retried(self):
        attempt = AsyncMock(side_effect=ModelConfigurationError("GEMINI_API_KEY is not set."))
        with pytest.raises(ModelConfigurationError):
            await run_with_fallback(["a", "b"], attempt, RetryPolicy(), AsyncMock())
        assert attempt.await_count == 1

    @pytest.mark.asyncio
    async def test_no_candidates(self):
        with pytest.raises(ReplyGenerationError):
            await run_with_fallback([], AsyncMock(), RetryPolicy(), AsyncMock())


class TestReplyGenerator:
    """Test text and vision calls through a fake chat model."""

    def make_generator(self, reply="answer"):
        chat_model = MagicMock()
        chat_model.ainvoke = AsyncMock(return_value=AIMessage(content=reply))
        factory = MagicMock(return_value=chat_model)
        return ReplyGenerator(model_factory=factory, sleep=AsyncMock()), factory, chat_model

    @pytest.mark.asyncio
    async def test_generate_sends_history(self):
        generator, factory, chat_model = self.make_generator()
        turns = [Turn(role="user", content="hi"), Turn(role="model", content="hey"), Turn(role="user", content="q")]

        reply = await generator.generate(turns, "gemini-2.5-pro", last_content="AUGMENTED")

        assert reply == "answer"
        factory.assert_called_once_with("gemini-2.5-pro")
        messages = chat_model.ainvoke.await_args.args[0]
        assert [type(m) for m in messages] == [HumanMessage, AIMessage, HumanMessage]
        assert messages[-1].content == "AUGMENTED"

    @pytest.mark.asyncio
    async def test_generate_with_images(self):
        generator, _, chat_model = self.make_generator()
        await generator.generate_with_images("look", [ImagePayload(data="QUJD", mime_type="image/png")])
        [message] = chat_model.ainvoke.await_args.args[0]
        assert message.content[0] == {"type": "text", "text": "look"}
        assert message.content[1]["image_url"]["url"] == "data:image/png;base64,QUJD"

    @pytest.mark.asyncio
    async def test_falls_back_to_next_model(self):
        failing = MagicMock()
        failing.ainvoke = AsyncMock(side_effect=ValueError("model not found"))
        working = MagicMock()
        working.ainvoke = AsyncMock(return_value=AIMessage(content=[{"type": "text", "text": "fallback"}]))
        factory = MagicMock(side_effect=lambda model_id: failing if model_id == "custom-model" else working)

        generator = ReplyGenerator(model_factory=factory, sleep=AsyncMock())
        assert await generator.generate([Turn(role="user", content="q")], "custom-model") == "fallback"

    def test_text_from_content_parts(self):
        assert lc_text_from_content([{"type": "text", "text": "a"}, {"type": "image_url"}, "b"]) == "ab"
