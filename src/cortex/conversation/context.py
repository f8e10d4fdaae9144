"""Live, mutable state of the active conversation."""

from dataclasses import dataclass, field
from enum import Enum

from ..llm.base import RemoteConversationHandle
from ..llm.models import ModelConfiguration
from .models import Message, new_id, welcome_message


class TurnState(str, Enum):
    """Lifecycle of one turn, from submission to a final response."""

    IDLE = "idle"
    SUBMITTING = "submitting"
    AWAITING_FIRST_FRAGMENT = "awaiting_first_fragment"
    STREAMING = "streaming"
    FINALIZED = "finalized"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def in_flight(self) -> bool:
        return self in (
            TurnState.SUBMITTING,
            TurnState.AWAITING_FIRST_FRAGMENT,
            TurnState.STREAMING,
        )


class CancellationToken:
    """Cooperative cancellation flag for a single turn.

    Set once by the user, read by the fragment consumer.
    """

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class ConversationContext:
    """State of the conversation currently shown to the user.

    The remote handle is stored together with the configuration it was
    established with so a model change is detected before the next send.
    """

    config: ModelConfiguration
    session_id: str = field(default_factory=new_id)
    messages: list[Message] = field(default_factory=lambda: [welcome_message()])
    turn_state: TurnState = TurnState.IDLE
    cancellation: CancellationToken | None = None
    remote: RemoteConversationHandle | None = None

    @property
    def in_flight(self) -> bool:
        return self.turn_state.in_flight

    @property
    def remote_config_id(self) -> str | None:
        """Configuration id of the established remote conversation."""
        return self.remote.config_id if self.remote is not None else None

    def needs_establishment(self) -> bool:
        """True when the remote conversation must be (re)established."""
        return self.remote_config_id != self.config.id

    def invalidate_remote(self) -> None:
        """Drop the remote conversation so the next send replays history."""
        self.remote = None

    def append(self, message: Message) -> Message:
        self.messages.append(message)
        return message

    def reset(self, session_id: str | None = None, messages: list[Message] | None = None) -> None:
        """Switch to another transcript, dropping the remote conversation."""
        self.session_id = session_id or new_id()
        self.messages = list(messages) if messages is not None else [welcome_message()]
        self.turn_state = TurnState.IDLE
        self.cancellation = None
        self.invalidate_remote()
