"""Agent provider — builds PydanticAI model instances from ``provider/model`` names."""

from __future__ import annotations

import logging

from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from config.settings import get_settings

logger = logging.getLogger(__name__)


def create_model(model_name: str | None = None):
    """Build a PydanticAI model instance.

    Parses the ``"provider/model"`` format (e.g. ``"deepseek/deepseek-chat"``,
    ``"anthropic/claude-sonnet-4-20250514"``) and creates the appropriate model.

    - ``anthropic/*`` → native :class:`AnthropicModel`
    - ``deepseek/*`` → :class:`OpenAIChatModel` via the OpenAI-compatible endpoint
    - ``openai/*`` or bare name → :class:`OpenAIChatModel` with OpenAI API

    Args:
        model_name: Model identifier in ``"provider/model"`` format.
                    Defaults to ``settings.default_model``.
    """
    settings = get_settings()
    name = model_name or settings.default_model

    if "/" in name:
        prefix, model_id = name.split("/", 1)

        if prefix == "anthropic":
            from pydantic_ai.models.anthropic import AnthropicModel
            from pydantic_ai.providers.anthropic import AnthropicProvider

            provider = AnthropicProvider(api_key=settings.anthropic_api_key)
            return AnthropicModel(model_id, provider=provider)

        if prefix == "deepseek":
            provider = OpenAIProvider(
                api_key=settings.deepseek_api_key,
                base_url=settings.deepseek_base_url,
            )
            return OpenAIChatModel(model_id, provider=provider)

        if prefix != "openai":
            logger.warning("Unknown model provider %r, using the OpenAI API", prefix)
        name = model_id

    provider = OpenAIProvider(api_key=settings.openai_api_key)
    return OpenAIChatModel(name, provider=provider)
