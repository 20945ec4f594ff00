"""
Conversation DAO

Purpose
-------
Provides a thin data-access layer for the `Conversation` ORM entity:
- Create conversations
- Query by id and owner, or list by owner
- Overwrite the whole conversation document (title, model, turns)
- Delete one conversation or every conversation of an owner

Design
------
- Requires an active SQLAlchemy `Session` supplied by the caller (no session
  creation inside the DAO). This keeps transaction boundaries in the service
  layer where they belong.
- Every lookup is scoped by owner: a conversation id alone never reaches a row.

Usage
-----
.. code-block:: python

    from chatbot_backend.database.daos.conversation_dao import ConversationDao

    dao = ConversationDao()
    with engine.new_session() as session:
        conversation = dao.fetchConversationByIdAndUserId(session, conversation_id, user_id)
        conversation.title = "Renamed"
        session.commit()

Error Handling
--------------
- Methods catch generic `Exception`, log the error message, and re-raise.
"""

import logging
from uuid import UUID

from sqlalchemy import desc, delete
from sqlalchemy.orm import Session

from chatbot_backend.database.entities.conversations import Conversation

logger = logging.getLogger(__name__)


class ConversationDao:
    """
    Data Access Object (DAO) for managing Conversation entities.
    Provides CRUD operations on the `Conversation` table.
    """

    def createConversation(self, session: Session, conversation: Conversation) -> Conversation:
        """
        Stage a new conversation record.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        conversation : Conversation
            Conversation entity instance to be added.
        """
        try:
            session.add(conversation)
            return conversation
        except Exception as e:
            logger.error("Error in ConversationDao.createConversation. Error: %s", e)
            raise e

    def fetchConversationByIdAndUserId(self, session: Session, conversation_id: UUID, user_id: str) -> Conversation | None:
        """
        Fetch a single conversation owned by `user_id`.

        Returns
        -------
        Conversation | None
            The conversation, or None when it does not exist or belongs to someone else.
        """
        try:
            return (
                session.query(Conversation)
                .filter(Conversation.id == conversation_id)
                .filter(Conversation.user_id == user_id)
                .one_or_none()
            )
        except Exception as e:
            logger.error("Error in ConversationDao.fetchConversationByIdAndUserId. Error: %s", e)
            raise e

    def fetchConversationByUserId(self, session: Session, user_id: str) -> list[Conversation]:
        """
        Fetch all conversations belonging to a specific user,
        ordered by most recently updated.
        """
        try:
            conversations = (
                session.query(Conversation)
                .filter(Conversation.user_id == user_id)
                .order_by(desc(Conversation.updated_at))
                .all()
            )
            return conversations
        except Exception as e:
            logger.error("Error in ConversationDao.fetchConversationByUserId. Error: %s", e)
            raise e

    def updateConversation(
        self,
        session: Session,
        conversation: Conversation,
        title: str,
        model: str,
        turns: list,
        timestamp,
    ) -> Conversation:
        """
        Overwrite the mutable fields of a conversation in one write.

        `turns` is assigned as a fresh list so the JSON column is always
        flagged dirty, even when the caller mutated a copy of the old value.
        """
        try:
            conversation.title = title
            conversation.model = model
            conversation.turns = list(turns)
            conversation.updated_at = timestamp
            return conversation
        except Exception as e:
            logger.error("Error in ConversationDao.updateConversation. Error: %s", e)
            raise e

    def deleteConversation(self, session: Session, conversation_id: UUID, user_id: str) -> bool:
        """
        Delete one conversation owned by `user_id`.

        Returns
        -------
        bool
            True if a row was deleted.
        """
        try:
            result = session.execute(
                delete(Conversation)
                .where(Conversation.id == conversation_id)
                .where(Conversation.user_id == user_id)
            )
            return result.rowcount > 0
        except Exception as e:
            logger.error("Error in ConversationDao.deleteConversation. Error: %s", e)
            raise e

    def deleteConversationsByUserId(self, session: Session, user_id: str) -> int:
        """Delete every conversation owned by `user_id`; returns the number of rows removed."""
        try:
            result = session.execute(delete(Conversation).where(Conversation.user_id == user_id))
            return result.rowcount
        except Exception as e:
            logger.error("Error in ConversationDao.deleteConversationsByUserId. Error: %s", e)
            raise e
