"""LLM provider factory."""

from ..config import Config
from .anthropic import AnthropicProvider
from .base import LLMProvider
from .openai import OPENROUTER_BASE_URL, OpenAIProvider

__all__ = ["AnthropicProvider", "LLMProvider", "OpenAIProvider", "get_llm_provider"]


def get_llm_provider(config: Config) -> LLMProvider:
    """Create and return the configured LLM provider."""
    options = {
        "summary_detail": config.summary_detail,
        "default_folder": config.default_folder,
    }
    if config.llm_provider == "claude":
        return AnthropicProvider(
            api_key=config.anthropic_api_key,
            model=config.default_model,
            **options,
        )
    if config.llm_provider == "openrouter":
        return OpenAIProvider(
            api_key=config.openrouter_api_key,
            model=config.default_model,
            base_url=OPENROUTER_BASE_URL,
            **options,
        )
    return OpenAIProvider(
        api_key=config.openai_api_key,
        model=config.default_model,
        **options,
    )
