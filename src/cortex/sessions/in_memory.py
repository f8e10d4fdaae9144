"""In-memory key-value storage backend.

Simple dict-based storage. Data is lost when the application exits.
"""

from .base import KeyValueStorage


class InMemoryStorage(KeyValueStorage):
    """In-memory storage (process lifetime only).

    Suitable for single-run use or testing.
    """

    def __init__(self, initial: dict[str, str] | None = None):
        self._values: dict[str, str] = dict(initial or {})

    async def connect(self) -> None:
        """Initialize storage (no-op for in-memory)."""
        pass

    async def disconnect(self) -> None:
        """Close storage (no-op for in-memory)."""
        pass

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    @property
    def backend_type(self) -> str:
        return "memory"
