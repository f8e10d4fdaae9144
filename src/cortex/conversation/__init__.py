"""Conversation orchestration and streaming pipeline."""

from .accumulator import StreamAccumulator
from .context import CancellationToken, ConversationContext, TurnState
from .history import build_history, message_parts, outbound_text
from .models import (
    Attachment,
    AttachmentKind,
    ConversationSession,
    GroundingSource,
    Message,
    Role,
    welcome_message,
)
from .orchestrator import TurnOrchestrator

__all__ = [
    "Attachment",
    "AttachmentKind",
    "CancellationToken",
    "ConversationContext",
    "ConversationSession",
    "GroundingSource",
    "Message",
    "Role",
    "StreamAccumulator",
    "TurnOrchestrator",
    "TurnState",
    "build_history",
    "message_parts",
    "outbound_text",
    "welcome_message",
]
