"""Data models for conversations.

These models define messages, attachments and sessions independent of the
remote service and of the storage backend used to persist them.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator
from uuid_extensions import uuid7

from ..config import (
    DEFAULT_SESSION_TITLE,
    SESSION_TITLE_MAX_LENGTH,
    WELCOME_MESSAGE_ID,
    WELCOME_MESSAGE_TEXT,
)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Time-ordered unique identifier."""
    return str(uuid7())


class Role(str, Enum):
    """Author of a message."""

    USER = "user"
    ASSISTANT = "assistant"


class AttachmentKind(str, Enum):
    """Kind of a user attachment."""

    IMAGE = "image"
    GENERIC_FILE = "generic-file"


class Attachment(BaseModel):
    """A model-ready file submitted alongside a user message.

    The payload is either base64-encoded binary (is_text=False) or
    extracted plain text (is_text=True), never both.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    kind: AttachmentKind
    mime_type: str = Field(description="Declared media type")
    data: str = Field(description="Base64 payload or extracted text")
    is_text: bool = False
    name: str | None = None


class GroundingSource(BaseModel):
    """A web citation attached to an assistant response."""

    model_config = ConfigDict(frozen=True)

    title: str
    uri: str


class Message(BaseModel):
    """A single message in a conversation.

    Content and grounding sources change while the message streams;
    finish() records the latency exactly once and ends streaming.
    """

    id: str = Field(default_factory=new_id)
    role: Role
    content: str = ""
    timestamp: datetime = Field(default_factory=utc_now)
    attachments: list[Attachment] = Field(default_factory=list)
    is_streaming: bool = False
    is_error: bool = False
    latency: int | None = Field(default=None, ge=0, description="Turn duration in milliseconds")
    grounding_sources: list[GroundingSource] | None = None
    model_used: str | None = None

    @model_validator(mode="after")
    def check_streaming_latency(self) -> "Message":
        """A streaming message cannot carry a latency."""
        if self.is_streaming and self.latency is not None:
            raise ValueError("a streaming message cannot have a latency")
        return self

    @field_serializer("timestamp")
    def serialize_datetime(self, value: datetime) -> str:
        """Serialize datetime to ISO format."""
        return value.isoformat()

    @property
    def is_welcome(self) -> bool:
        return self.id == WELCOME_MESSAGE_ID

    def update_stream(self, content: str, sources: list[GroundingSource]) -> None:
        """Replace content and sources with the latest accumulated state."""
        self.content = content
        self.grounding_sources = list(sources)

    def finish(self, latency: int | None = None) -> None:
        """End streaming, recording the latency if given.

        Raises:
            ValueError: If a latency was already recorded
        """
        self.is_streaming = False
        if latency is None:
            return
        if self.latency is not None:
            raise ValueError(f"latency already recorded for message {self.id}")
        self.latency = latency


def welcome_message() -> Message:
    """Create the synthetic greeting that opens every conversation."""
    return Message(
        id=WELCOME_MESSAGE_ID,
        role=Role.ASSISTANT,
        content=WELCOME_MESSAGE_TEXT,
    )


def has_user_content(messages: list[Message]) -> bool:
    """True when the transcript holds more than the greeting."""
    return any(not m.is_welcome for m in messages)


def derive_title(messages: list[Message]) -> str:
    """Title from the first user message, truncated."""
    for message in messages:
        if message.role == Role.USER:
            title = message.content[:SESSION_TITLE_MAX_LENGTH]
            return title or DEFAULT_SESSION_TITLE
    return DEFAULT_SESSION_TITLE


class ConversationSession(BaseModel):
    """A persisted, named conversation transcript."""

    id: str = Field(default_factory=new_id)
    title: str = DEFAULT_SESSION_TITLE
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    last_model_id: str | None = None

    @field_serializer("created_at", "updated_at")
    def serialize_datetime(self, value: datetime) -> str:
        """Serialize datetime to ISO format."""
        return value.isoformat()

    @classmethod
    def from_transcript(
        cls,
        session_id: str,
        messages: list[Message],
        model_id: str | None = None,
    ) -> "ConversationSession":
        """Snapshot a live transcript into a session.

        Args:
            session_id: Identifier of the session being saved
            messages: Transcript in chronological order
            model_id: Active model configuration id

        Returns:
            New session holding deep copies of the messages
        """
        return cls(
            id=session_id,
            title=derive_title(messages),
            messages=[m.model_copy(deep=True) for m in messages],
            last_model_id=model_id,
        )
