"""
AI provider abstraction module.
Provides a unified interface for embedding and chat providers.
"""
from chatgenius.ai.factory import get_llm_provider
from chatgenius.ai.base import LLMProvider

__all__ = ["get_llm_provider", "LLMProvider"]
