"""
LLM provider factory.
Selects and returns the appropriate provider based on configuration.
"""
import logging

from chatgenius.config import Settings
from chatgenius.ai.base import LLMProvider
from chatgenius.ai.openai_provider import OpenAIProvider

logger = logging.getLogger(__name__)


def get_llm_provider(settings: Settings) -> LLMProvider:
    """
    Factory function to get the configured LLM provider.

    OpenAI is used for both embeddings and chat completions.

    Returns:
        LLMProvider instance

    Raises:
        ValueError: If provider is misconfigured
    """
    provider = OpenAIProvider(
        api_key=settings.openai_api_key,
        embedding_model=settings.openai_embedding_model,
        chat_model=settings.openai_chat_model,
    )
    if not provider.is_configured():
        logger.warning("OpenAI provider selected but API key not configured")
        raise ValueError("OpenAI API key not configured. Set OPENAI_API_KEY environment variable.")
    logger.info("Using OpenAI provider")
    return provider

