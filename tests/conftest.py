"""Shared fixtures for the chatbot backend test suite."""

import os

# Settings are loaded at import time; provide the required values first.
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["GEMINI_API_KEY"] = ""
os.environ["GEMINI_MODEL_NAME"] = ""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from chatbot_backend.api.models import Attachment, ConversationRecord, SessionUser
from chatbot_backend.database.config.connection_engine import ConnectionEngine
from chatbot_backend.database.core.conversation_store import ConversationStore


@pytest.fixture
def connection_engine(tmp_path):
    """An opened SQLite engine with all tables created."""
    engine = ConnectionEngine(f"sqlite:///{tmp_path / 'chatbot.db'}").open()
    engine.create_tables()
    yield engine
    engine.close()


@pytest.fixture
def store(connection_engine):
    return ConversationStore(connection_engine)


@pytest.fixture
def user():
    return SessionUser(id="user-1", name="Asha", email="asha@example.com")


@pytest.fixture
def other_user():
    return SessionUser(id="user-2", name="Ravi", email="ravi@example.com")


@pytest.fixture
def make_conversation():
    """Factory for in-memory conversation records."""

    def _make(turns=None, title="New Chat", model="gemini-2.5-flash", user_id="user-1"):
        now = datetime.now(timezone.utc)
        return ConversationRecord(
            id=uuid4(),
            user_id=user_id,
            title=title,
            model=model,
            turns=list(turns or []),
            created_at=now,
            updated_at=now,
        )

    return _make


@pytest.fixture
def image_attachment():
    return Attachment(
        filename="1718000000-cat.png",
        original_name="cat.png",
        mime_type="image/png",
        size=4,
        url="/uploads/1718000000-cat.png",
    )


@pytest.fixture
def pdf_attachment():
    return Attachment(
        filename="1718000000-report.pdf",
        original_name="report.pdf",
        mime_type="application/pdf",
        size=10,
        url="/uploads/1718000000-report.pdf",
    )


