from abc import ABC, abstractmethod
from typing import Any

from .models import Content, ContentPart, ModelConfiguration, StreamingResponse


class RemoteConversationHandle(ABC):
    """A remote conversation established with a fixed history and configuration.

    The remote service holds no memory of its own beyond what the handle was
    established with, so a handle is replaced whenever the configuration or
    the transcript it mirrors changes.
    """

    def __init__(self, config: ModelConfiguration):
        self._config = config

    @property
    def config(self) -> ModelConfiguration:
        """Configuration this handle was established with."""
        return self._config

    @property
    def config_id(self) -> str:
        return self._config.id

    @abstractmethod
    async def send_stream(self, parts: list[ContentPart]) -> StreamingResponse:
        """Send one user turn and stream the response.

        Args:
            parts: Content parts of the new user turn

        Returns:
            StreamingResponse yielding ResponseFragment items.
            The sequence is finite and cannot be restarted.

        Raises:
            RemoteServiceFailure: If the call fails before or during streaming
        """
        pass


class LLMProvider(ABC):
    """Abstract base class for remote generative services.

    This module hides the design decision of which service is used.
    Implementations must handle provider-specific details like:
    - API client setup and authentication
    - Request/response format conversion
    - Wrapping service errors into RemoteServiceFailure

    Supports async context manager protocol for proper resource cleanup:
        async with provider:
            handle = await provider.start_conversation(history, config)
        # Automatically cleaned up
    """

    @abstractmethod
    async def start_conversation(
        self,
        history: list[Content],
        config: ModelConfiguration,
    ) -> RemoteConversationHandle:
        """Establish a remote conversation.

        Args:
            history: Ordered prior transcript as role-tagged content items
            config: Model configuration to use

        Returns:
            Handle used to send subsequent turns

        Raises:
            RemoteServiceFailure: If establishment fails; no partial
                handle is returned
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        pass

    async def __aenter__(self) -> "LLMProvider":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
