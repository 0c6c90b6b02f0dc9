"""
OpenAI provider implementation.
Uses the async OpenAI SDK for embeddings and chat completions.
"""
from typing import List, Optional
import logging
import time

import openai
from openai import AsyncOpenAI

from chatgenius.ai.base import LLMProvider
from chatgenius.errors import EmbeddingProviderError
from chatgenius.utils.ai_metrics import track_ai_provider_metrics_async
from chatgenius.utils.logging import log_provider_failure, log_provider_request

logger = logging.getLogger(__name__)

# Failures worth retrying: rate limits, network problems, upstream 5xx
TRANSIENT_ERRORS = (
    openai.RateLimitError,
    openai.APIConnectionError,
    openai.InternalServerError,
)


class OpenAIProvider(LLMProvider):
    """
    OpenAI LLM provider implementation.

    Uses OpenAI API for:
    - Embeddings: text-embedding-ada-002 by default (1536 dimensions)
    - Chat: persona summaries, agent responses, assistant answers

    API keys are stored in environment variables and never exposed to clients.
    """

    def __init__(
        self,
        api_key: Optional[str],
        embedding_model: str = "text-embedding-ada-002",
        chat_model: str = "gpt-4-turbo-preview"
    ):
        self.api_key = api_key
        self.embedding_model = embedding_model
        self.chat_model = chat_model

        if self.api_key:
            # Retries are owned by the pipeline retry policy
            self.client = AsyncOpenAI(api_key=self.api_key, max_retries=0)
        else:
            self.client = None

    def is_configured(self) -> bool:
        """Check if OpenAI API key is configured."""
        return bool(self.api_key)

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()

    @track_ai_provider_metrics_async("openai", "embed")
    async def embed(self, text: str) -> List[float]:
        """
        Generate embedding using OpenAI API.

        Args:
            text: Input text to embed

        Returns:
            Embedding vector (length checked by the caller)

        Raises:
            ValueError: If API key not configured
            EmbeddingProviderError: If API call fails (transient flag set for retryable errors)
        """
        if not self.is_configured() or not self.client:
            raise ValueError("OpenAI API key not configured")

        start_time = time.time()
        try:
            response = await self.client.embeddings.create(
                model=self.embedding_model,
                input=text
            )
        except TRANSIENT_ERRORS as e:
            log_provider_failure(
                logger, "openai", "embed", str(e),
                duration_ms=(time.time() - start_time) * 1000,
                transient=True
            )
            raise EmbeddingProviderError(f"OpenAI embedding request failed: {e}", transient=True) from e
        except openai.OpenAIError as e:
            log_provider_failure(
                logger, "openai", "embed", str(e),
                duration_ms=(time.time() - start_time) * 1000,
                transient=False
            )
            raise EmbeddingProviderError(f"OpenAI embedding request rejected: {e}", transient=False) from e

        embedding = response.data[0].embedding
        log_provider_request(
            logger, "openai", "embed",
            duration_ms=(time.time() - start_time) * 1000,
            text_length=len(text)
        )
        return embedding

    @track_ai_provider_metrics_async("openai", "complete")
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

        Raises:
            ValueError: If API key not configured
            Exception: If API call fails or returns no content
        """
        if not self.is_configured() or not self.client:
            raise ValueError("OpenAI API key not configured")

        try:
            response = await self.client.chat.completions.create(
                model=model or self.chat_model,
                messages=[
                    {
                        "role": "system",
                        "content": system_prompt
                    },
                    {
                        "role": "user",
                        "content": user_prompt
                    }
                ],
                temperature=temperature,
                max_tokens=max_tokens
            )
        except openai.OpenAIError as e:
            logger.error(f"OpenAI chat completion API error: {e}")
            raise Exception(f"Failed to generate completion: {str(e)}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise Exception("Failed to generate completion: empty response")

        logger.info(f"Generated OpenAI completion (length: {len(content)})")
        return content
