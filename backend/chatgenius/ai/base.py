"""
Base class for LLM providers.
All providers must implement this interface to ensure compatibility.
"""
from abc import ABC, abstractmethod
from typing import List, Optional


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    This interface lets the pipeline use any provider without knowing which one.

    All providers must implement:
    - embed(): Generate embeddings for text
    - complete(): Generate a chat completion from a system and user prompt
    """

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """
        Generate embedding vector for text.

        Args:
            text: Input text to embed (already normalized by the caller)

        Returns:
            List of floats representing the embedding vector

        Raises:
            EmbeddingProviderError: If the upstream call fails
        """
        pass

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 500
    ) -> str:
        """
        Generate a chat completion.

        Args:
            system_prompt: System instructions
            user_prompt: User message
            model: Optional model override
            temperature: Sampling temperature
            max_tokens: Completion token limit

        Returns:
            Completion text

        Raises:
            Exception: If the completion fails or is empty
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """
        Check if provider is properly configured (API key present, etc.).

        Returns:
            True if provider can be used, False otherwise
        """
        pass

    async def close(self) -> None:
        """Release network resources. Optional."""
        return None
