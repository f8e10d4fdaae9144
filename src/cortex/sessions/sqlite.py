"""SQLite key-value storage backend.

Provides persistent storage using a SQLite database file.
Uses aiosqlite for async access.
"""

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from .base import KeyValueStorage


class SQLiteStorage(KeyValueStorage):
    """SQLite-backed key-value storage.

    Stores each key as one row; writes replace the row.
    """

    def __init__(self, path: str | Path = "./cortex_sessions.db"):
        self._db_path = Path(path).expanduser()
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Initialize database connection and schema."""
        if self._connection is not None:
            return
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._db_path)
        await self._create_schema()

    async def _create_schema(self) -> None:
        """Create database tables."""
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        await self._connection.commit()

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("SQLiteStorage is not connected; call connect() first")
        return self._connection

    async def get(self, key: str) -> str | None:
        connection = self._require_connection()
        async with connection.execute(
            "SELECT value FROM kv WHERE key = ?",
            (key,)
        ) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        connection = self._require_connection()
        now = datetime.now(timezone.utc).isoformat()
        await connection.execute("""
            INSERT INTO kv (key, value, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
        """, (key, value, now))
        await connection.commit()

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
