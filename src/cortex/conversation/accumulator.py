"""Streaming response accumulation.

Folds streamed fragments into one growing assistant message and a
URI-deduplicated list of grounding sources.
"""

from collections.abc import AsyncIterable, Callable

from ..llm.models import ResponseFragment
from .context import CancellationToken
from .models import GroundingSource, Message

MessageCallback = Callable[[Message], None]


class StreamAccumulator:
    """Accumulates one turn's fragments into a target message.

    Each applied fragment fully replaces the target's content and sources
    with the accumulated state, so repeated renders always agree with it.
    An accumulator consumes exactly one stream.
    """

    def __init__(
        self,
        target: Message,
        cancellation: CancellationToken,
        on_update: MessageCallback | None = None,
    ):
        self._target = target
        self._cancellation = cancellation
        self._on_update = on_update
        self._parts: list[str] = []
        self._sources: dict[str, GroundingSource] = {}
        self._fragment_count = 0
        self._consumed = False
        self._cancelled = False

    @property
    def content(self) -> str:
        return "".join(self._parts)

    @property
    def sources(self) -> list[GroundingSource]:
        """Grounding sources in first-seen order."""
        return list(self._sources.values())

    @property
    def fragment_count(self) -> int:
        return self._fragment_count

    @property
    def cancelled(self) -> bool:
        """True if consumption stopped because of cancellation."""
        return self._cancelled

    def apply(self, fragment: ResponseFragment) -> bool:
        """Apply one fragment to the target message.

        Returns:
            False if cancellation was observed and the fragment was skipped
        """
        if self._cancellation.cancelled:
            self._cancelled = True
            return False

        if fragment.text:
            self._parts.append(fragment.text)

        for citation in fragment.citations:
            # First-seen title wins
            if citation.uri not in self._sources:
                self._sources[citation.uri] = GroundingSource(title=citation.title, uri=citation.uri)

        self._fragment_count += 1
        self._target.update_stream(self.content, self.sources)
        if self._on_update is not None:
            self._on_update(self._target)
        return True

    async def consume(self, stream: AsyncIterable[ResponseFragment]) -> str:
        """Consume a fragment stream until it ends or is cancelled.

        On cancellation the stream is abandoned; fragments that still
        arrive are never applied.

        Returns:
            The accumulated content

        Raises:
            RuntimeError: If called more than once
        """
        if self._consumed:
            raise RuntimeError("StreamAccumulator can only consume one stream")
        self._consumed = True

        async for fragment in stream:
            if not self.apply(fragment):
                break

        if self._cancelled:
            close = getattr(stream, "aclose", None)
            if close is not None:
                await close()

        return self.content
