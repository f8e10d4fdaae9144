"""Static catalog of selectable model variants."""

from ..config import REASONING_THINKING_BUDGET
from .models import ModelConfiguration

MODELS: dict[str, ModelConfiguration] = {
    "flash": ModelConfiguration(
        id="flash",
        name="Flash",
        description="Fast & efficient",
        api_model="gemini-2.5-flash",
    ),
    "reasoning": ModelConfiguration(
        id="reasoning",
        name="Reasoning",
        description="High intelligence",
        api_model="gemini-3-pro-preview",
        thinking_budget=REASONING_THINKING_BUDGET,
    ),
    "research": ModelConfiguration(
        id="research",
        name="Research",
        description="Web grounded",
        api_model="gemini-2.5-flash",
        use_grounding=True,
    ),
}


def get_model_configuration(model_id: str) -> ModelConfiguration:
    """Look up a model configuration by id.

    Raises:
        ValueError: If the id is not in the catalog
    """
    try:
        return MODELS[model_id]
    except KeyError:
        raise ValueError(
            f"Unknown model: {model_id}. "
            f"Supported models: {', '.join(MODELS)}"
        ) from None
