"""
Chat Workflow: Classification • Local Answers • News • Vision • Text Completion
==============================================================================

Purpose
-------
Answers one user message in a conversation and persists the exchange.

Flow (``ChatPipeline.run_full_pipeline``)
-----------------------------------------
1. Reject messages with neither text nor attachments.
2. Load the conversation, scoped by owner.
3. Append the user turn (in memory).
4. Pick exactly one answer strategy:
     - date/time question → local answer, no outbound call
     - news question      → headline digest (falls back to text completion when empty)
     - image attachments  → vision call with the augmented prompt
                            (falls back to text completion when no image is readable)
     - otherwise          → text completion over the whole conversation, the
                            last turn replaced by the augmented prompt
5. Append the model turn and auto-title the conversation.
6. Persist with a single write.

Any failure before step 6 leaves the stored conversation untouched.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from chatbot_backend.api.exceptions import ConversationNotFoundError, InvalidMessageError
from chatbot_backend.api.models import (
    Attachment,
    ConversationRecord,
    FeatureOptions,
    NewMessage,
    SessionUser,
    Turn,
)
from chatbot_backend.api.news_search import NewsProvider
from chatbot_backend.api.prompt_utilities import (
    ImageLoader,
    PromptAugmenter,
    current_datetime_answer,
    format_news_digest,
)
from chatbot_backend.api.query_classifier import QueryKind, classify_query
from chatbot_backend.api.reply_generator import ReplyGenerator
from chatbot_backend.database.core.conversation_store import ConversationStore
from chatbot_backend.database.entities.conversations import DEFAULT_TITLE

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 50
NEWS_LIMIT = 6


@dataclass
class ExchangeResult:
    """Outcome of a successful exchange."""
    reply: str
    conversation: ConversationRecord


class ChatPipeline:
    """
    Conversation orchestrator.

    Parameters
    ----------
    store : ConversationStore
    reply_generator : ReplyGenerator
    augmenter : PromptAugmenter
    news_provider : NewsProvider
    image_loader : ImageLoader
    """

    def __init__(
        self,
        store: ConversationStore,
        reply_generator: ReplyGenerator,
        augmenter: PromptAugmenter,
        news_provider: NewsProvider,
        image_loader: ImageLoader,
    ):
        self.store = store
        self.reply_generator = reply_generator
        self.augmenter = augmenter
        self.news_provider = news_provider
        self.image_loader = image_loader

    async def run_full_pipeline(self, user: SessionUser, conversation_id: UUID, message: NewMessage) -> ExchangeResult:
        """
        Answer `message` in the user's conversation and persist both turns.

        Raises
        ------
        InvalidMessageError
            Empty content and no attachments.
        ConversationNotFoundError
            Unknown conversation, or owned by someone else.
        ReplyGenerationError
            The upstream model could not produce a reply.
        """
        content = message.content.strip()
        if not content and not message.attachments:
            raise InvalidMessageError()

        conversation = self.store.find(conversation_id, user.id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)

        reply = await self.exchange(conversation, content, message.attachments, message.features)

        saved = self.store.save(conversation)
        if saved is None:
            # Deleted while the reply was being generated
            raise ConversationNotFoundError(conversation_id)
        return ExchangeResult(reply=reply, conversation=saved)

    async def exchange(
        self,
        conversation: ConversationRecord,
        content: str,
        attachments: list[Attachment],
        features: FeatureOptions,
    ) -> str:
        """
        Append the user turn, produce the reply, append the model turn and
        apply the title rule. Works on `conversation` in memory only.
        """
        conversation.turns.append(Turn(role="user", content=content, attachments=list(attachments)))

        reply = await self._answer(conversation, content, attachments, features)

        conversation.turns.append(Turn(role="model", content=reply))
        if conversation.title == DEFAULT_TITLE and content:
            conversation.title = content[:TITLE_MAX_LENGTH]
        return reply

    async def _answer(
        self,
        conversation: ConversationRecord,
        content: str,
        attachments: list[Attachment],
        features: FeatureOptions,
    ) -> str:
        kind = classify_query(content, features, has_attachments=bool(attachments))
        logger.debug("Conversation %s: query classified as %s", conversation.id, kind.value)

        if kind is QueryKind.DATE_TIME:
            return current_datetime_answer()

        if kind is QueryKind.NEWS:
            items = await self.news_provider.search_news(content, NEWS_LIMIT)
            if items:
                return format_news_digest(items)
            logger.info("No headlines found, answering with the model instead")
            return await self._complete(conversation, content, features)

        if any(a.is_image for a in attachments):
            images = await self.image_loader.load(attachments)
            if images:
                prompt = await self.augmenter.build_prompt(content, features)
                return await self.reply_generator.generate_with_images(prompt, images, conversation.model)
            logger.info("No readable image attachments, answering with text only")

        return await self._complete(conversation, content, features)

    async def _complete(self, conversation: ConversationRecord, content: str, features: FeatureOptions) -> str:
        prompt = await self.augmenter.build_prompt(content, features)
        return await self.reply_generator.generate(conversation.turns, conversation.model, last_content=prompt)
