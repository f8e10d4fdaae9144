"""Turn orchestration.

Drives one user submission through to one finalized assistant response
and manages the session lifecycle around it.

Hidden design decisions:
- When the remote conversation is (re)established and with which history
- How cancellation reaches the fragment consumer
- How failures are turned into a user-safe error message
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING

from ..config import DEFAULT_MODEL_ID, GENERIC_ERROR_TEXT
from ..exceptions import AttachmentExtractionFailure, RemoteServiceFailure, UnsupportedAttachmentType
from ..llm.base import LLMProvider
from ..llm.configurations import get_model_configuration
from ..llm.models import ModelConfiguration
from .accumulator import MessageCallback, StreamAccumulator
from .context import CancellationToken, ConversationContext, TurnState
from .history import build_history, message_parts, outbound_text
from .models import Attachment, ConversationSession, Message, Role, has_user_content

if TYPE_CHECKING:
    from ..sessions.store import SessionStore

logger = logging.getLogger(__name__)


def elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


class TurnOrchestrator:
    """Top-level driver of a conversation.

    At most one turn is in flight at a time; submissions made while a turn
    is streaming are ignored. Switching or starting sessions while a turn
    is in flight cancels the turn and waits for it to finalize first.
    """

    def __init__(
        self,
        provider: LLMProvider,
        store: "SessionStore",
        model_id: str = DEFAULT_MODEL_ID,
        on_update: MessageCallback | None = None,
    ):
        self._provider = provider
        self._store = store
        self._context = ConversationContext(config=get_model_configuration(model_id))
        self._on_update = on_update
        self._pending: list[Attachment] = []
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def context(self) -> ConversationContext:
        return self._context

    @property
    def messages(self) -> list[Message]:
        return self._context.messages

    @property
    def config(self) -> ModelConfiguration:
        return self._context.config

    @property
    def state(self) -> TurnState:
        return self._context.turn_state

    @property
    def sessions(self) -> list[ConversationSession]:
        return self._store.sessions

    @property
    def pending_attachments(self) -> list[Attachment]:
        return list(self._pending)

    def set_update_callback(self, callback: MessageCallback | None) -> None:
        """Set the callback invoked whenever a message is appended or changed."""
        self._on_update = callback

    def _notify(self, message: Message) -> None:
        if self._on_update is not None:
            self._on_update(message)

    # Composer state

    async def attach_file(self, path: str | Path, mime_type: str | None = None) -> Attachment:
        """Normalize a file and queue it for the next submission.

        Raises:
            UnsupportedAttachmentType: If the file type is not supported
            AttachmentExtractionFailure: If the document cannot be read
        """
        from ..attachments import load_attachment

        try:
            attachment = await load_attachment(path, mime_type)
        except (UnsupportedAttachmentType, AttachmentExtractionFailure) as e:
            logger.warning("Attachment rejected: %s", e)
            raise

        self._pending.append(attachment)
        return attachment

    def add_attachment(self, attachment: Attachment) -> None:
        self._pending.append(attachment)

    def remove_attachment(self, attachment_id: str) -> bool:
        """Remove a queued attachment by id."""
        remaining = [a for a in self._pending if a.id != attachment_id]
        removed = len(remaining) != len(self._pending)
        self._pending = remaining
        return removed

    def select_model(self, model_id: str) -> ModelConfiguration:
        """Change the active model; the next send re-establishes on mismatch."""
        config = get_model_configuration(model_id)
        self._context.config = config
        return config

    # Turns

    def cancel(self) -> bool:
        """Request cooperative cancellation of the in-flight turn.

        Returns:
            True if a turn was in flight
        """
        token = self._context.cancellation
        if not self._context.in_flight or token is None:
            return False
        token.cancel()
        logger.debug("Cancellation requested for session %s", self._context.session_id)
        return True

    async def submit(self, text: str) -> Message | None:
        """Run one turn for the given text and the queued attachments.

        Returns:
            The finalized assistant message, the error message if the turn
            failed, or None if the submission was empty or a turn is in flight
        """
        context = self._context
        text = text.strip()
        attachments = list(self._pending)
        if (not text and not attachments) or context.in_flight:
            return None

        self._pending.clear()
        token = CancellationToken()
        context.cancellation = token
        context.turn_state = TurnState.SUBMITTING
        self._idle.clear()
        start = time.monotonic()

        user_message = context.append(
            Message(role=Role.USER, content=text, attachments=attachments)
        )
        self._notify(user_message)

        placeholder: Message | None = None
        try:
            if context.needs_establishment():
                history = build_history(context.messages[:-1])
                context.remote = await self._provider.start_conversation(history, context.config)
                logger.info(
                    "Established remote conversation model=%s history=%d",
                    context.config.id,
                    len(history),
                )
            remote = context.remote

            context.turn_state = TurnState.AWAITING_FIRST_FRAGMENT
            placeholder = context.append(
                Message(role=Role.ASSISTANT, is_streaming=True, model_used=context.config.id)
            )
            self._notify(placeholder)

            parts = message_parts(outbound_text(text, attachments), attachments)
            stream = await remote.send_stream(parts)

            def on_fragment(message: Message) -> None:
                context.turn_state = TurnState.STREAMING
                self._notify(message)

            accumulator = StreamAccumulator(placeholder, token, on_update=on_fragment)
            await accumulator.consume(stream)

            placeholder.finish(latency=elapsed_ms(start))
            if accumulator.cancelled:
                context.turn_state = TurnState.CANCELLED
                context.invalidate_remote()
                logger.info("Turn cancelled after %d fragment(s)", accumulator.fragment_count)
            else:
                context.turn_state = TurnState.FINALIZED
            self._notify(placeholder)
            return placeholder

        except Exception:
            logger.exception("Turn failed in session %s", context.session_id)
            context.turn_state = TurnState.FAILED
            context.invalidate_remote()
            error_message = context.append(
                Message(role=Role.ASSISTANT, content=GENERIC_ERROR_TEXT, is_error=True)
            )
            self._notify(error_message)
            return error_message

        finally:
            if placeholder is not None and placeholder.is_streaming:
                placeholder.finish()
                self._notify(placeholder)
            if context.turn_state.in_flight:
                # Task was cancelled from outside
                context.turn_state = TurnState.CANCELLED
                context.invalidate_remote()
            context.cancellation = None
            self._idle.set()

    async def wait_idle(self) -> None:
        """Wait until no turn is in flight."""
        await self._idle.wait()

    async def _settle(self) -> None:
        """Cancel any in-flight turn and wait for it to finalize."""
        if self._context.in_flight:
            self.cancel()
            await self.wait_idle()

    # Sessions

    async def start(self) -> list[ConversationSession]:
        """Load stored sessions."""
        return await self._store.load()

    async def save_current_session(self) -> ConversationSession | None:
        """Persist the active transcript unless it only holds the greeting."""
        context = self._context
        if not has_user_content(context.messages):
            return None
        session = ConversationSession.from_transcript(
            context.session_id, context.messages, model_id=context.config.id
        )
        await self._store.upsert(session)
        logger.debug("Saved session %s (%d messages)", session.id, len(session.messages))
        return session

    async def new_session(self) -> str:
        """Save the current conversation and start an empty one.

        Returns:
            Id of the new session
        """
        await self._settle()
        await self.save_current_session()
        self._context.reset()
        self._pending.clear()
        return self._context.session_id

    async def switch_session(self, session_id: str) -> ConversationSession:
        """Save the current conversation and restore a stored one.

        The restored transcript is replayed to the remote service with the
        currently selected model.

        Raises:
            KeyError: If no stored session has this id
        """
        session = self._store.get(session_id)
        if session is None:
            raise KeyError(f"Unknown session: {session_id}")

        await self._settle()
        if self._context.session_id != session.id:
            await self.save_current_session()

        messages = [m.model_copy(deep=True) for m in session.messages]
        self._context.reset(session.id, messages)
        self._pending.clear()

        try:
            self._context.remote = await self._provider.start_conversation(
                build_history(messages), self._context.config
            )
        except RemoteServiceFailure as e:
            # Next submit retries the establishment
            logger.warning("Could not re-establish session %s: %s", session.id, e)

        return session

    async def clear_conversation(self) -> str:
        """Discard the current conversation without saving it.

        Returns:
            Id of the new session
        """
        await self._settle()
        self._context.reset()
        self._pending.clear()
        return self._context.session_id

    async def delete_session(self, session_id: str) -> bool:
        """Remove a stored session."""
        return await self._store.delete(session_id)
