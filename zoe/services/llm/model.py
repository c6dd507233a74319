"""LLM model abstraction for consistent model access across the application."""

import os

from pydantic_ai.models.anthropic import AnthropicModel
from pydantic_ai.models.fallback import FallbackModel
from pydantic_ai.models.openai import OpenAIModel

from zoe.coaching.errors import AIUnavailableError
from zoe.config.settings import settings


def has_ai_key() -> bool:
    return bool(settings.anthropic_api_key or settings.openai_api_key)


def get_model(provider: str, model_name: str):
    if provider == "openai":
        # Ensure OPENAI_API_KEY is set from settings for pydantic_ai
        if settings.openai_api_key and not os.getenv("OPENAI_API_KEY"):
            os.environ["OPENAI_API_KEY"] = settings.openai_api_key
        return OpenAIModel(model_name)

    if provider == "anthropic":
        if settings.anthropic_api_key and not os.getenv("ANTHROPIC_API_KEY"):
            os.environ["ANTHROPIC_API_KEY"] = settings.anthropic_api_key
        return AnthropicModel(model_name)

    raise ValueError(f"Unsupported LLM provider: {provider}")


def get_generation_model():
    """Model used for plan generation.

    Anthropic is preferred when configured; with both keys set OpenAI is
    the fallback.

    Raises:
        AIUnavailableError: neither key is configured
    """
    models = []
    if settings.anthropic_api_key:
        models.append(get_model("anthropic", settings.anthropic_model))
    if settings.openai_api_key:
        models.append(get_model("openai", settings.openai_model))
    if not models:
        raise AIUnavailableError()
    if len(models) == 1:
        return models[0]
    return FallbackModel(*models)


def get_light_model():
    """Cheap model for short copywriting (content descriptions)."""
    if settings.openai_api_key:
        return get_model("openai", settings.openai_light_model)
    if settings.anthropic_api_key:
        return get_model("anthropic", settings.anthropic_model)
    raise AIUnavailableError()
