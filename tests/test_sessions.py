"""Unit tests for session persistence."""
import pytest

from cortex.config import SESSIONS_STORAGE_KEY
from cortex.conversation import ConversationSession, Message, Role, welcome_message
from cortex.exceptions import PersistenceCorruption
from cortex.sessions import (
    InMemoryStorage,
    KeyValueStorage,
    SessionStore,
    create_key_value_storage,
    decode_sessions,
    encode_sessions,
)
from cortex.sessions.sqlite import SQLiteStorage


def make_session(session_id: str, text: str = "hello") -> ConversationSession:
    return ConversationSession.from_transcript(
        session_id,
        [welcome_message(), Message(role=Role.USER, content=text)],
        model_id="flash",
    )


class TestKeyValueStorage:
    """Tests for storage backends."""

    def test_storage_is_abstract(self):
        with pytest.raises(TypeError):
            KeyValueStorage()  # type: ignore

    @pytest.mark.asyncio
    async def test_in_memory_get_set(self):
        storage = InMemoryStorage()
        await storage.connect()

        assert await storage.get("k") is None
        await storage.set("k", "v1")
        await storage.set("k", "v2")
        assert await storage.get("k") == "v2"
        assert storage.backend_type == "memory"

    @pytest.mark.asyncio
    async def test_sqlite_persists_across_connections(self, tmp_path):
        path = tmp_path / "nested" / "sessions.db"

        storage = SQLiteStorage(path)
        await storage.connect()
        await storage.set("k", "v1")
        await storage.set("k", "v2")
        await storage.disconnect()

        reopened = SQLiteStorage(path)
        await reopened.connect()
        try:
            assert await reopened.get("k") == "v2"
            assert await reopened.get("missing") is None
        finally:
            await reopened.disconnect()

    @pytest.mark.asyncio
    async def test_sqlite_requires_connect(self, tmp_path):
        storage = SQLiteStorage(tmp_path / "s.db")
        with pytest.raises(RuntimeError, match="not connected"):
            await storage.get("k")

    def test_factory(self, tmp_path):
        assert isinstance(create_key_value_storage("memory"), InMemoryStorage)
        sqlite = create_key_value_storage("sqlite", path=tmp_path / "s.db")
        assert isinstance(sqlite, SQLiteStorage)
        assert sqlite.backend_type == "sqlite"

    def test_factory_unknown_backend(self):
        with pytest.raises(ValueError, match="Unsupported storage backend"):
            create_key_value_storage("redis")


class TestSerialization:
    """Tests for the serialized session collection."""

    def test_round_trip(self):
        sessions = [make_session("a"), make_session("b", "other")]

        restored = decode_sessions(encode_sessions(sessions))

        assert [s.id for s in restored] == ["a", "b"]
        assert restored[0].messages[1].timestamp == sessions[0].messages[1].timestamp
        assert restored[0].created_at.tzinfo is not None

    def test_timestamps_stored_with_offset(self):
        raw = encode_sessions([make_session("a")])
        assert "+00:00" in raw

    def test_corrupt_record(self):
        with pytest.raises(PersistenceCorruption):
            decode_sessions("{not json")

    def test_wrong_shape(self):
        with pytest.raises(PersistenceCorruption):
            decode_sessions('{"id": "a"}')


class TestSessionStore:
    """Tests for SessionStore load/save/upsert."""

    @pytest.mark.asyncio
    async def test_load_missing_record(self, store):
        assert await store.load() == []

    @pytest.mark.asyncio
    async def test_load_corrupt_record(self, caplog):
        storage = InMemoryStorage({SESSIONS_STORAGE_KEY: "definitely not json"})
        store = SessionStore(storage)

        with caplog.at_level("WARNING"):
            sessions = await store.load()

        assert sessions == []
        assert "Failed to load sessions" in caplog.text

    @pytest.mark.asyncio
    async def test_save_then_load(self, storage):
        await SessionStore(storage).save([make_session("a"), make_session("b")])

        loaded = await SessionStore(storage).load()

        assert [s.id for s in loaded] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_upsert_new_goes_first(self, store):
        await store.upsert(make_session("a"))
        await store.upsert(make_session("b"))

        assert [s.id for s in store.sessions] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_upsert_existing_keeps_position(self, store):
        await store.upsert(make_session("a", "first"))
        await store.upsert(make_session("b"))
        await store.upsert(make_session("c"))
        original_created = store.get("b").created_at

        await store.upsert(make_session("b", "changed"))

        assert [s.id for s in store.sessions] == ["c", "b", "a"]
        assert store.get("b").title == "changed"
        assert store.get("b").created_at == original_created

    @pytest.mark.asyncio
    async def test_upsert_persists_full_collection(self, storage, store):
        await store.upsert(make_session("a"))
        await store.upsert(make_session("b"))

        raw = await storage.get(SESSIONS_STORAGE_KEY)
        assert [s.id for s in decode_sessions(raw)] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.upsert(make_session("a"))

        assert await store.delete("a") is True
        assert await store.delete("a") is False
        assert store.sessions == []
