from .base import LLMProvider, RemoteConversationHandle
from .configurations import MODELS, get_model_configuration
from .factory import create_llm_provider
from .models import (
    Citation,
    Content,
    ContentPart,
    ModelConfiguration,
    ResponseFragment,
    StreamingResponse,
)
from .providers import GeminiProvider

__all__ = [
    "LLMProvider",
    "RemoteConversationHandle",
    "create_llm_provider",
    "MODELS",
    "get_model_configuration",
    "Citation",
    "Content",
    "ContentPart",
    "ModelConfiguration",
    "ResponseFragment",
    "StreamingResponse",
    "GeminiProvider",
]
