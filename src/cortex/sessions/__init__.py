"""Session persistence for cortex.

Provides durable storage of conversation sessions across restarts.
"""

from .base import KeyValueStorage
from .factory import create_key_value_storage
from .in_memory import InMemoryStorage
from .store import SessionStore, decode_sessions, encode_sessions

__all__ = [
    "KeyValueStorage",
    "InMemoryStorage",
    "SessionStore",
    "create_key_value_storage",
    "decode_sessions",
    "encode_sessions",
]
