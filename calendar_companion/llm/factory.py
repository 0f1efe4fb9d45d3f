"""Create the configured LLM provider."""

from ..config.config_schema import AppConfig
from .base import BaseLLM


def create_llm(config: AppConfig) -> BaseLLM:
    """
    Create LLM instance based on configuration.

    Args:
        config: Application configuration

    Returns:
        BaseLLM instance

    Raises:
        ValueError: If the provider is unknown or its section is missing
    """
    provider = config.llm.provider.lower()

    if provider == "gemini":
        if not config.llm.gemini:
            raise ValueError("Gemini configuration is required")
        from .gemini_llm import GeminiLLM

        return GeminiLLM(
            api_key=config.llm.gemini.api_key,
            model=config.llm.gemini.model,
            temperature=config.llm.gemini.temperature,
            max_tokens=config.llm.gemini.max_tokens,
            safety_settings=config.llm.gemini.safety_settings,
        )

    elif provider == "openai":
        if not config.llm.openai:
            raise ValueError("OpenAI configuration is required")
        from .openai_llm import OpenAILLM

        return OpenAILLM(
            api_key=config.llm.openai.api_key,
            model=config.llm.openai.model,
            temperature=config.llm.openai.temperature,
            max_tokens=config.llm.openai.max_tokens,
            organization_id=config.llm.openai.organization_id,
        )

    else:
        raise ValueError(f"Unknown LLM provider: {provider}")
