"""
Embedding service.
Normalizes text, calls the embedding provider with retries, and guards
the index against vectors of the wrong dimensionality.
"""
import asyncio
import logging
import re
from typing import List, Optional

from chatgenius.ai.base import LLMProvider
from chatgenius.errors import EmbeddingLengthMismatch, EmbeddingProviderError
from chatgenius.pipeline.retry import RetryPolicy, SleepFunc, with_retry
from chatgenius.utils.metrics import embedding_retries_total

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str, max_chars: int = 8000) -> str:
    """Trim, collapse whitespace runs to one space, and truncate to ``max_chars``."""
    return _WHITESPACE.sub(" ", text.strip())[:max_chars]


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, EmbeddingProviderError) and exc.transient


class EmbeddingService:
    """Turns text into a fixed-length vector."""

    def __init__(
        self,
        provider: LLMProvider,
        dimension: int = 1536,
        max_chars: int = 8000,
        max_attempts: int = 3,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.provider = provider
        self.dimension = dimension
        self.max_chars = max_chars
        self.max_attempts = max_attempts
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    def _count_retry(self, attempt: int, error: BaseException, delay: float) -> None:
        embedding_retries_total.inc()

    async def embed(self, text: str) -> List[float]:
        """
        Embed ``text`` after normalization.

        Raises:
            ValueError: If the text is empty after normalization
            EmbeddingProviderError: If the provider keeps failing
            EmbeddingLengthMismatch: If the vector has the wrong length (not retried)
        """
        cleaned = normalize_text(text, self.max_chars)
        if not cleaned:
            raise ValueError("Cannot embed empty text")

        vector = await with_retry(
            lambda: self.provider.embed(cleaned),
            max_attempts=self.max_attempts,
            policy=self.retry_policy,
            retry_on=_is_transient,
            sleep=self._sleep,
            on_retry=self._count_retry,
        )

        if vector is None or len(vector) != self.dimension:
            raise EmbeddingLengthMismatch(self.dimension, len(vector) if vector is not None else 0)

        logger.debug(f"Embedded text (length: {len(cleaned)})")
        return list(vector)
