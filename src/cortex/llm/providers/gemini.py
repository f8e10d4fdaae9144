"""Google Gemini remote conversation implementation.

Uses the official Google GenAI SDK for async streaming chats.
Reference: https://github.com/googleapis/python-genai
"""

import base64
import logging
from collections.abc import AsyncIterator
from typing import Any

from google import genai
from google.genai import types

from ...config import SYSTEM_INSTRUCTION
from ...exceptions import RemoteServiceFailure
from ..base import LLMProvider, RemoteConversationHandle
from ..models import (
    Citation,
    Content,
    ContentPart,
    ModelConfiguration,
    ResponseFragment,
    StreamingResponse,
)

logger = logging.getLogger(__name__)

# Default safety settings - relaxed to avoid blocking code-related content
DEFAULT_SAFETY_SETTINGS = [
    types.SafetySetting(category="HARM_CATEGORY_HARASSMENT", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_HATE_SPEECH", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_SEXUALLY_EXPLICIT", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_DANGEROUS_CONTENT", threshold="BLOCK_ONLY_HIGH"),
]


def convert_part(part: ContentPart) -> types.Part:
    """Convert a ContentPart to a Gemini part."""
    if part.is_inline_data:
        return types.Part(
            inline_data=types.Blob(
                data=base64.b64decode(part.data),
                mime_type=part.mime_type,
            )
        )
    return types.Part(text=part.text)


def convert_history(history: list[Content]) -> list[types.Content]:
    """Convert content items to Gemini format.

    Gemini tags the assistant role as "model".
    """
    return [
        types.Content(
            role="model" if item.role == "assistant" else "user",
            parts=[convert_part(p) for p in item.parts],
        )
        for item in history
    ]


def build_config(config: ModelConfiguration) -> types.GenerateContentConfig:
    """Build the generation config for a model variant."""
    tools = None
    if config.use_grounding:
        tools = [types.Tool(google_search=types.GoogleSearch())]

    thinking_config = None
    if config.thinking_budget is not None:
        thinking_config = types.ThinkingConfig(thinking_budget=config.thinking_budget)

    return types.GenerateContentConfig(
        system_instruction=SYSTEM_INSTRUCTION,
        safety_settings=DEFAULT_SAFETY_SETTINGS,
        tools=tools,
        thinking_config=thinking_config,
    )


def extract_fragment(chunk: Any) -> ResponseFragment:
    """Extract text delta and web citations from a streamed chunk.

    Thought parts are skipped; only answer text is returned.
    """
    texts: list[str] = []
    citations: list[Citation] = []

    if chunk.candidates:
        candidate = chunk.candidates[0]
        if candidate.content and candidate.content.parts:
            texts = [
                part.text for part in candidate.content.parts
                if getattr(part, "text", None) and not getattr(part, "thought", False)
            ]

        metadata = getattr(candidate, "grounding_metadata", None)
        if metadata and metadata.grounding_chunks:
            for grounding_chunk in metadata.grounding_chunks:
                web = grounding_chunk.web
                if web and web.uri and web.title:
                    citations.append(Citation(title=web.title, uri=web.uri))

    return ResponseFragment(text="".join(texts) or None, citations=citations)


class GeminiConversation(RemoteConversationHandle):
    """A Gemini chat established with a fixed history."""

    def __init__(self, chat: Any, config: ModelConfiguration):
        super().__init__(config)
        self._chat = chat

    async def send_stream(self, parts: list[ContentPart]) -> StreamingResponse:
        """Send one user turn and stream the response."""
        return StreamingResponse(self._stream_generator([convert_part(p) for p in parts]))

    async def _stream_generator(self, parts: list[types.Part]) -> AsyncIterator[ResponseFragment]:
        """Internal generator that yields one fragment per streamed chunk."""
        try:
            stream = await self._chat.send_message_stream(parts)
            async for chunk in stream:
                yield extract_fragment(chunk)
        except Exception as e:
            raise RemoteServiceFailure(f"Gemini stream failed: {e}") from e


class GeminiProvider(LLMProvider):
    """Google Gemini provider implementation.

    Hidden design decisions:
    - Google GenAI client initialization
    - Message format conversion
    - Grounding tool and thinking budget configuration
    - Relaxed safety settings to avoid blocking code content
    """

    def __init__(self, api_key: str, **client_kwargs: Any):
        """Initialize Gemini provider.

        Args:
            api_key: Google AI API key
            **client_kwargs: Additional kwargs for Client
        """
        self._client = genai.Client(api_key=api_key, **client_kwargs)

    async def start_conversation(
        self,
        history: list[Content],
        config: ModelConfiguration,
    ) -> GeminiConversation:
        """Establish a Gemini chat with the given history."""
        try:
            chat = self._client.aio.chats.create(
                model=config.api_model,
                config=build_config(config),
                history=convert_history(history),
            )
        except Exception as e:
            raise RemoteServiceFailure(f"Failed to start Gemini chat: {e}") from e

        logger.debug(
            "Gemini chat established model=%s history=%d", config.api_model, len(history)
        )
        return GeminiConversation(chat, config)

    async def close(self) -> None:
        """Close the Gemini client.

        Note: The Google GenAI client doesn't require explicit closing,
        but we implement this for interface consistency.
        """
        pass
