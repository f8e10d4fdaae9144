"""Conversion of transcript messages into outbound content."""

from ..config import DEFAULT_ATTACHMENT_INSTRUCTION
from ..llm.models import Content, ContentPart
from .models import Attachment, Message, Role


def attachment_part(attachment: Attachment) -> ContentPart:
    """Text attachments become a labelled text part, binaries inline data."""
    if attachment.is_text:
        return ContentPart(text=f"\n[Attachment: {attachment.name}]\n{attachment.data}\n")
    return ContentPart(data=attachment.data, mime_type=attachment.mime_type)


def message_parts(text: str, attachments: list[Attachment]) -> list[ContentPart]:
    parts = []
    if text:
        parts.append(ContentPart(text=text))
    parts.extend(attachment_part(a) for a in attachments)
    return parts


def outbound_text(text: str, attachments: list[Attachment]) -> str:
    """Text sent to the service; never empty when attachments are present."""
    if not text and attachments:
        return DEFAULT_ATTACHMENT_INSTRUCTION
    return text


def build_history(messages: list[Message]) -> list[Content]:
    """Build replay history from a transcript.

    Skips the greeting, error messages and messages without any
    content to send.
    """
    history = []
    for message in messages:
        if message.is_welcome or message.is_error:
            continue
        attachments = message.attachments if message.role == Role.USER else []
        parts = message_parts(message.content, attachments)
        if not parts:
            continue
        history.append(Content(role=message.role.value, parts=parts))
    return history
