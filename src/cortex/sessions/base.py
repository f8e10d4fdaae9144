"""Abstract base class for durable key-value storage backends.

This module defines the interface the session store persists through.
The abstraction hides:
- Storage format (SQLite, in-memory, etc.)
- Persistence mechanism (file, database, in-memory)
- Connection management
"""

from abc import ABC, abstractmethod


class KeyValueStorage(ABC):
    """Abstract key-value storage backend.

    Values are opaque strings; a set replaces any prior value.
    """

    @abstractmethod
    async def connect(self) -> None:
        """Initialize the storage backend."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the storage backend gracefully."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored under key, or None if absent."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any prior value."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""
