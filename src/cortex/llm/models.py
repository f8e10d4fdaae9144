from collections.abc import AsyncIterator

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ContentPart(BaseModel):
    """One part of a content item: plain text or inline binary data."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    data: str | None = Field(default=None, description="Base64-encoded payload")
    mime_type: str | None = None

    @model_validator(mode="after")
    def check_exclusive(self) -> "ContentPart":
        """A part is either text or inline data."""
        if (self.text is None) == (self.data is None):
            raise ValueError("a part must carry exactly one of text or data")
        if self.data is not None and not self.mime_type:
            raise ValueError("inline data requires a mime_type")
        return self

    @property
    def is_inline_data(self) -> bool:
        return self.data is not None


class Content(BaseModel):
    """A role-tagged content item in the conversation history."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the author: 'user' or 'assistant'")
    parts: list[ContentPart] = Field(min_length=1)


class ModelConfiguration(BaseModel):
    """Static configuration of one selectable model variant."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Catalog identifier: flash, reasoning or research")
    name: str
    description: str
    api_model: str = Field(description="Remote model identifier")
    use_grounding: bool = False
    thinking_budget: int | None = Field(default=None, ge=0)


class Citation(BaseModel):
    """A citation entry carried by a response fragment."""

    model_config = ConfigDict(frozen=True)

    title: str
    uri: str


class ResponseFragment(BaseModel):
    """One incremental unit of a streamed response."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    citations: list[Citation] = Field(default_factory=list)


class StreamingResponse:
    """Async iterator of ResponseFragment returned by a remote conversation.

    Wraps the provider's generator so a consumer can abandon the stream
    early with aclose().

    Usage:
        stream = await handle.send_stream(parts)
        async for fragment in stream:
            print(fragment.text or "", end="")
    """

    def __init__(self, async_iter: AsyncIterator[ResponseFragment]):
        """Initialize with an async iterator of fragments.

        Args:
            async_iter: Async iterator yielding response fragments
        """
        self._iter = async_iter

    def __aiter__(self) -> "StreamingResponse":
        """Return self as async iterator."""
        return self

    async def __anext__(self) -> ResponseFragment:
        """Get next fragment from the underlying iterator."""
        return await self._iter.__anext__()

    async def aclose(self) -> None:
        """Abandon the stream, releasing the underlying generator."""
        close = getattr(self._iter, "aclose", None)
        if close is not None:
            await close()
