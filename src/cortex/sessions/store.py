"""Durable collection of conversation sessions.

The whole collection is serialized to JSON and written under one key,
most recent first. Timestamps round-trip as ISO-8601 instants with an
explicit UTC offset.
"""

import logging

from pydantic import TypeAdapter, ValidationError

from ..config import SESSIONS_STORAGE_KEY
from ..conversation.models import ConversationSession, utc_now
from ..exceptions import PersistenceCorruption
from .base import KeyValueStorage

logger = logging.getLogger(__name__)

_SESSIONS_ADAPTER = TypeAdapter(list[ConversationSession])


def encode_sessions(sessions: list[ConversationSession]) -> str:
    """Serialize a session collection to JSON."""
    return _SESSIONS_ADAPTER.dump_json(sessions).decode("utf-8")


def decode_sessions(raw: str) -> list[ConversationSession]:
    """Deserialize a session collection.

    Raises:
        PersistenceCorruption: If the record is not a valid collection
    """
    try:
        return _SESSIONS_ADAPTER.validate_json(raw)
    except (ValidationError, ValueError) as e:
        raise PersistenceCorruption(f"Stored sessions are unreadable: {e}") from e


class SessionStore:
    """Ordered, durable collection of conversation sessions.

    Keeps an in-memory copy of the collection; every mutation writes the
    entire collection back (last write wins).
    """

    def __init__(self, storage: KeyValueStorage, key: str = SESSIONS_STORAGE_KEY):
        self._storage = storage
        self._key = key
        self._sessions: list[ConversationSession] = []

    @property
    def sessions(self) -> list[ConversationSession]:
        """Sessions in display order, most recent first."""
        return list(self._sessions)

    def get(self, session_id: str) -> ConversationSession | None:
        """Find a session by id."""
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    async def load(self) -> list[ConversationSession]:
        """Read the collection from storage.

        A missing or corrupt record yields an empty collection.
        """
        raw = await self._storage.get(self._key)
        if raw is None:
            self._sessions = []
            return []

        try:
            self._sessions = decode_sessions(raw)
        except PersistenceCorruption as e:
            logger.warning("Failed to load sessions, starting with empty history: %s", e)
            self._sessions = []

        logger.debug("Loaded %d session(s)", len(self._sessions))
        return self.sessions

    async def save(self, sessions: list[ConversationSession]) -> None:
        """Persist the full collection, replacing any prior record."""
        self._sessions = list(sessions)
        await self._storage.set(self._key, encode_sessions(self._sessions))

    async def upsert(self, session: ConversationSession) -> list[ConversationSession]:
        """Insert or replace one session and persist the collection.

        A known id is replaced in place and keeps its creation time;
        a new id is placed at the front.

        Returns:
            The updated collection
        """
        session = session.model_copy(update={"updated_at": utc_now()})
        updated = list(self._sessions)

        for index, existing in enumerate(updated):
            if existing.id == session.id:
                updated[index] = session.model_copy(update={"created_at": existing.created_at})
                break
        else:
            updated.insert(0, session)

        await self.save(updated)
        return self.sessions

    async def delete(self, session_id: str) -> bool:
        """Remove a session and persist the collection.

        Returns:
            True if a session was removed
        """
        remaining = [s for s in self._sessions if s.id != session_id]
        if len(remaining) == len(self._sessions):
            return False
        await self.save(remaining)
        return True
