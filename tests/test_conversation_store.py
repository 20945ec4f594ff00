"""Integration tests for ConversationStore against SQLite."""

from uuid import uuid4

import pytest

from chatbot_backend.api.models import Turn
from chatbot_backend.database.helpers.transactionManagement import db_session_context


class TestConversationStore:
    """Test owner-scoped CRUD and whole-document saves."""

    def test_create_defaults_title(self, store):
        record = store.create("user-1", "   ", "gemini-2.5-flash")
        assert record.title == "New Chat"
        assert record.turns == []
        loaded = store.find(record.id, "user-1")
        assert (loaded.id, loaded.user_id, loaded.title, loaded.model) == (
            record.id, "user-1", "New Chat", "gemini-2.5-flash"
        )

    def test_find_is_scoped_by_owner(self, store):
        record = store.create("user-1", "Mine", "gemini-2.5-flash")
        assert store.find(record.id, "user-2") is None
        assert store.find(uuid4(), "user-1") is None

    def test_save_writes_turns_and_title(self, store, image_attachment):
        record = store.create("user-1", None, "gemini-2.5-flash")
        record.turns.append(Turn(role="user", content="look", attachments=[image_attachment]))
        record.turns.append(Turn(role="model", content="a cat"))
        record.title = "look"

        saved = store.save(record)
        loaded = store.find(record.id, "user-1")

        assert saved.updated_at >= record.created_at
        assert loaded.title == "look"
        assert [(t.role, t.content) for t in loaded.turns] == [("user", "look"), ("model", "a cat")]
        assert loaded.turns[0].attachments == [image_attachment]

    def test_save_missing_conversation(self, store, make_conversation):
        assert store.save(make_conversation()) is None

    def test_list_most_recent_first(self, store):
        first = store.create("user-1", "first", "gemini-2.5-flash")
        second = store.create("user-1", "second", "gemini-2.5-flash")
        store.create("user-2", "other", "gemini-2.5-flash")

        store.update_fields(first.id, "user-1", title="first renamed")

        assert [c.id for c in store.list_for_owner("user-1")] == [first.id, second.id]

    def test_update_fields(self, store):
        record = store.create("user-1", "old", "gemini-2.5-flash")

        updated = store.update_fields(record.id, "user-1", model="gemini-2.5-pro")

        assert updated.title == "old"
        assert updated.model == "gemini-2.5-pro"
        assert store.update_fields(record.id, "user-2", title="stolen") is None

    def test_delete_and_delete_all(self, store):
        a = store.create("user-1", "a", "m")
        store.create("user-1", "b", "m")
        other = store.create("user-2", "c", "m")

        assert store.delete(a.id, "user-2") is False
        assert store.delete(a.id, "user-1") is True
        assert store.delete_all("user-1") == 1
        assert store.list_for_owner("user-1") == []
        assert store.find(other.id, "user-2") is not None

    def test_failed_transaction_rolls_back(self, store, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(store.dao, "updateConversation", explode)
        record = store.create("user-1", "keep", "m")
        record.title = "changed"

        with pytest.raises(RuntimeError):
            store.save(record)

        assert store.find(record.id, "user-1").title == "keep"
        assert db_session_context.get() is None
