"""Pytest configuration and shared fixtures."""
import asyncio
import os

import pytest

from cortex.exceptions import RemoteServiceFailure
from cortex.llm import (
    Citation,
    Content,
    ContentPart,
    LLMProvider,
    ModelConfiguration,
    RemoteConversationHandle,
    ResponseFragment,
    StreamingResponse,
)
from cortex.conversation import TurnOrchestrator
from cortex.sessions import InMemoryStorage, SessionStore


class FakeConversation(RemoteConversationHandle):
    """Remote handle that replays scripted fragments."""

    def __init__(self, provider: "FakeProvider", config: ModelConfiguration):
        super().__init__(config)
        self._provider = provider
        self.sent: list[list[ContentPart]] = []

    async def send_stream(self, parts: list[ContentPart]) -> StreamingResponse:
        self.sent.append(parts)
        self._provider.sent.append(parts)
        if self._provider.fail_send:
            raise RemoteServiceFailure("send failed")
        return StreamingResponse(self._generate())

    async def _generate(self):
        provider = self._provider
        for index, fragment in enumerate(provider.fragments):
            if provider.gate is not None and index == provider.gate_index:
                await provider.gate.wait()
            if provider.fail_after is not None and index == provider.fail_after:
                raise RemoteServiceFailure("stream broke")
            provider.yielded += 1
            yield fragment


class FakeProvider(LLMProvider):
    """In-memory stand-in for the remote generative service."""

    def __init__(self, fragments: list[ResponseFragment] | None = None):
        self.fragments = fragments if fragments is not None else [
            ResponseFragment(text="Hel"),
            ResponseFragment(text="lo"),
        ]
        self.established: list[tuple[list[Content], ModelConfiguration]] = []
        self.sent: list[list[ContentPart]] = []
        self.fail_start = False
        self.fail_send = False
        self.fail_after: int | None = None
        self.gate: asyncio.Event | None = None
        self.gate_index = 0
        self.yielded = 0
        self.closed = False

    async def start_conversation(self, history, config) -> FakeConversation:
        if self.fail_start:
            raise RemoteServiceFailure("establishment failed")
        self.established.append((list(history), config))
        return FakeConversation(self, config)

    async def close(self) -> None:
        self.closed = True


def text_fragments(*texts: str) -> list[ResponseFragment]:
    return [ResponseFragment(text=t) for t in texts]


def cited(uri: str, title: str, text: str | None = None) -> ResponseFragment:
    return ResponseFragment(text=text, citations=[Citation(title=title, uri=uri)])


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "gemini": os.getenv("GEMINI_API_KEY"),
    }


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def store(storage):
    return SessionStore(storage)


@pytest.fixture
def updates():
    """Messages passed to the update callback, in order."""
    return []


@pytest.fixture
def orchestrator(provider, store, updates):
    return TurnOrchestrator(
        provider=provider,
        store=store,
        on_update=lambda m: updates.append(m.model_copy(deep=True)),
    )


@pytest.fixture
def sample_docx_bytes():
    """Build a small Word document in memory."""
    import io

    from docx import Document

    document = Document()
    document.add_paragraph("Quarterly report")
    document.add_paragraph("Revenue grew by 12%.")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Region"
    table.rows[0].cells[1].text = "EMEA"

    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()
