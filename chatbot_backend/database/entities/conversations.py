"""
Conversation ORM Model
=======================

The ``Conversation`` ORM model represents a user-owned chat thread stored in the
``conversation`` table. It is implemented with SQLAlchemy 2.0-style typing and
portable column types (``Uuid``, ``JSON``) so the same model runs on PostgreSQL
in production and SQLite in tests.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Opaque owner identifier (``user_id``) taken from the verified session
- Display title (``title``), ``"New Chat"`` until auto-set from the first message
- Selected upstream model identifier (``model``)
- Ordered turn sequence (``turns``) stored as a single JSON document, so that
  appending turns and saving the conversation is one row update
- Timezone-aware ``created_at`` / ``updated_at`` timestamps (UTC)

Integration notes
~~~~~~~~~~~~~~~~~
- Rows are converted to ``ConversationRecord`` pydantic models by the
  conversation store; nothing outside the database package touches ORM objects.
"""

from chatbot_backend.database.config.connection_engine import declarativeBase
from sqlalchemy import DateTime, TEXT, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
from datetime import datetime, timezone

DEFAULT_TITLE = "New Chat"
"""Placeholder title given to conversations created without one."""


class Conversation(declarativeBase):
    """
    ORM model for the `conversation` table.

    Attributes
    ----------
    id : UUID
        Primary key. Unique identifier for the conversation.
    user_id : str
        Identifier of the owning user (``sub`` claim of the session token).
    title : str
        Human-readable title of the conversation.
    model : str
        Model identifier requested first when generating replies.
    turns : list[dict]
        JSON-serialized turns, oldest first.
    created_at / updated_at : datetime
        Creation and last-write timestamps (timezone-aware, UTC).
    """

    __tablename__ = 'conversation'

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True)
    """Primary key. UUID of the conversation."""

    user_id: Mapped[str] = mapped_column(TEXT, nullable=False, index=True)
    """Owner identifier (cannot be null)."""

    title: Mapped[str] = mapped_column(TEXT, nullable=False, default=DEFAULT_TITLE)

    model: Mapped[str] = mapped_column(TEXT, nullable=False)

    turns: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    """Turn documents in append order."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __init__(
        self,
        conversation_id: UUID,
        user_id: str,
        title: str,
        model: str,
        turns: list | None = None,
        created_at: datetime | None = None,
    ):
        """
        Initialize a new Conversation object.

        Parameters
        ----------
        conversation_id : UUID
            Unique identifier for the conversation.
        user_id : str
            The ID of the user who owns this conversation.
        title : str
            Title of the conversation.
        model : str
            Selected model identifier.
        turns : list | None
            Initial JSON turn documents (defaults to empty).
        created_at : datetime | None
            Creation timestamp; defaults to now (UTC).
        """
        timestamp = created_at or datetime.now(timezone.utc)
        self.id = conversation_id
        self.user_id = user_id
        self.title = title
        self.model = model
        self.turns = list(turns or [])
        self.created_at = timestamp
        self.updated_at = timestamp

    def __str__(self) -> str:
        return (
            f"User: id:{self.user_id}, conversation: {self.title}, "
            f"turns: {len(self.turns or [])}, updated: {self.updated_at}"
        )
