"""
Service-layer operations for conversations.

All methods are wrapped with the `@transactional` decorator, which manages
SQLAlchemy sessions and transactions automatically. Each method accepts (and
uses) an injected `session: Session` provided by the decorator.

The store converts ORM rows into detached pydantic records
(`ConversationRecord`, `ConversationSummary`) so callers never hold live ORM
objects outside a transaction. A conversation, turns included, is written back
as a single row update by `save`.
"""

import logging
import uuid
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy.orm import Session

from chatbot_backend.api.models import ConversationRecord, ConversationSummary
from chatbot_backend.database.config.connection_engine import ConnectionEngine
from chatbot_backend.database.daos.conversation_dao import ConversationDao
from chatbot_backend.database.entities.conversations import Conversation, DEFAULT_TITLE
from chatbot_backend.database.helpers.transactionManagement import transactional

logger = logging.getLogger(__name__)


def _to_record(conversation: Conversation) -> ConversationRecord:
    return ConversationRecord(
        id=conversation.id,
        user_id=conversation.user_id,
        title=conversation.title,
        model=conversation.model,
        turns=conversation.turns or [],
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
    )


def _to_summary(conversation: Conversation) -> ConversationSummary:
    return ConversationSummary(
        id=conversation.id,
        title=conversation.title,
        model=conversation.model,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
    )


class ConversationStore:
    """
    Persistence service for conversations, scoped by owner.

    Parameters
    ----------
    connection_engine : ConnectionEngine
        An opened engine; `@transactional` draws sessions from it.
    """

    def __init__(self, connection_engine: ConnectionEngine):
        self.connection_engine = connection_engine
        self.dao = ConversationDao()

    @transactional
    def create(self, user_id: str, title: str | None, model: str, session: Session = None) -> ConversationRecord:
        """
        Create an empty conversation.

        Parameters
        ----------
        user_id : str
            Owner identifier.
        title : str | None
            Title; blank or None becomes ``"New Chat"``.
        model : str
            Selected model identifier.

        Returns
        -------
        ConversationRecord
            The stored conversation.
        """
        conversation = Conversation(
            conversation_id=uuid.uuid4(),
            user_id=user_id,
            title=(title or "").strip() or DEFAULT_TITLE,
            model=model,
        )
        self.dao.createConversation(session, conversation)
        session.flush()
        logger.debug("Created conversation %s for user %s", conversation.id, user_id)
        return _to_record(conversation)

    @transactional
    def find(self, conversation_id: UUID, user_id: str, session: Session = None) -> ConversationRecord | None:
        """Return the conversation if it exists and belongs to `user_id`, else None."""
        conversation = self.dao.fetchConversationByIdAndUserId(session, conversation_id, user_id)
        return _to_record(conversation) if conversation is not None else None

    @transactional
    def list_for_owner(self, user_id: str, session: Session = None) -> list[ConversationSummary]:
        """List the owner's conversations, most recently updated first."""
        return [_to_summary(c) for c in self.dao.fetchConversationByUserId(session, user_id)]

    @transactional
    def save(self, record: ConversationRecord, session: Session = None) -> ConversationRecord | None:
        """
        Write the whole conversation document (title, model, turns) in one update.

        Returns
        -------
        ConversationRecord | None
            The record with its refreshed `updated_at`, or None when the
            conversation no longer exists for this owner.
        """
        conversation = self.dao.fetchConversationByIdAndUserId(session, record.id, record.user_id)
        if conversation is None:
            return None
        timestamp = datetime.now(timezone.utc)
        self.dao.updateConversation(
            session,
            conversation,
            title=record.title,
            model=record.model,
            turns=[turn.model_dump(mode="json") for turn in record.turns],
            timestamp=timestamp,
        )
        return record.model_copy(update={"updated_at": timestamp})

    @transactional
    def update_fields(
        self,
        conversation_id: UUID,
        user_id: str,
        title: str | None = None,
        model: str | None = None,
        session: Session = None,
    ) -> ConversationRecord | None:
        """
        Rename a conversation and/or change its model. None leaves a field untouched.
        """
        conversation = self.dao.fetchConversationByIdAndUserId(session, conversation_id, user_id)
        if conversation is None:
            return None
        self.dao.updateConversation(
            session,
            conversation,
            title=title if title is not None else conversation.title,
            model=model if model is not None else conversation.model,
            turns=conversation.turns or [],
            timestamp=datetime.now(timezone.utc),
        )
        return _to_record(conversation)

    @transactional
    def delete(self, conversation_id: UUID, user_id: str, session: Session = None) -> bool:
        return self.dao.deleteConversation(session, conversation_id, user_id)

    @transactional
    def delete_all(self, user_id: str, session: Session = None) -> int:
        deleted = self.dao.deleteConversationsByUserId(session, user_id)
        logger.info("Deleted %s conversations for user %s", deleted, user_id)
        return deleted
