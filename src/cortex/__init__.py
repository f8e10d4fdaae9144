"""
Cortex: a streaming conversational client for remote generative models.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .conversation import (
    Attachment,
    ConversationSession,
    Message,
    TurnOrchestrator,
)
from .exceptions import (
    AttachmentExtractionFailure,
    CortexError,
    PersistenceCorruption,
    RemoteServiceFailure,
    UnsupportedAttachmentType,
)
from .sessions import SessionStore, create_key_value_storage

__all__ = [
    "Attachment",
    "AttachmentExtractionFailure",
    "ConversationSession",
    "CortexError",
    "Message",
    "PersistenceCorruption",
    "RemoteServiceFailure",
    "SessionStore",
    "TurnOrchestrator",
    "UnsupportedAttachmentType",
    "create_key_value_storage",
]
