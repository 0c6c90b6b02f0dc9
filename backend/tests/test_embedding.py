"""
Tests for the embedding service.
"""
import pytest

from chatgenius.errors import EmbeddingLengthMismatch, EmbeddingProviderError
from chatgenius.pipeline.embedding import EmbeddingService, normalize_text
from conftest import FakeLLMProvider


class TestNormalizeText:
    """Tests for text normalization."""

    def test_trims_and_collapses_whitespace(self):
        assert normalize_text("  hello \n\t  world  ") == "hello world"

    def test_truncates(self):
        assert normalize_text("abcdef", max_chars=3) == "abc"

    def test_truncates_after_collapsing(self):
        text = "a  " * 10
        assert normalize_text(text, max_chars=5) == "a a a"


class TestEmbeddingService:
    """Tests for EmbeddingService.embed."""

    @pytest.mark.asyncio
    async def test_returns_vector_of_expected_dimension(self, provider, clock):
        service = EmbeddingService(provider, sleep=clock.sleep)

        vector = await service.embed("hello world")

        assert len(vector) == 1536
        assert provider.embed_calls == ["hello world"]

    @pytest.mark.asyncio
    async def test_retries_transient_failures_with_backoff(self, provider, clock):
        provider.transient_failures = 2
        service = EmbeddingService(provider, sleep=clock.sleep)

        vector = await service.embed("hello")

        assert len(vector) == 1536
        assert len(provider.embed_calls) == 3
        assert len(clock.sleeps) == 2
        # base 1s then 2s, each plus up to 1s jitter
        assert 1.0 <= clock.sleeps[0] <= 2.0
        assert 2.0 <= clock.sleeps[1] <= 3.0
        assert 3.0 <= clock.elapsed <= 5.0

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self, provider, clock):
        provider.transient_failures = 10
        service = EmbeddingService(provider, sleep=clock.sleep)

        with pytest.raises(EmbeddingProviderError):
            await service.embed("hello")

        assert len(provider.embed_calls) == 3
        assert len(clock.sleeps) == 2

    @pytest.mark.asyncio
    async def test_non_transient_failure_not_retried(self, provider, clock):
        provider.fail_texts = ["forbidden"]
        service = EmbeddingService(provider, sleep=clock.sleep)

        with pytest.raises(EmbeddingProviderError):
            await service.embed("forbidden words")

        assert len(provider.embed_calls) == 1
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_wrong_dimension_raises(self, clock):
        provider = FakeLLMProvider(dimension=768)
        service = EmbeddingService(provider, sleep=clock.sleep)

        with pytest.raises(EmbeddingLengthMismatch) as exc_info:
            await service.embed("hello")

        assert exc_info.value.expected == 1536
        assert exc_info.value.actual == 768
        assert len(provider.embed_calls) == 1

    @pytest.mark.asyncio
    async def test_long_input_truncated_before_provider(self, provider, clock):
        service = EmbeddingService(provider, sleep=clock.sleep)

        await service.embed("x" * 10000)

        assert len(provider.embed_calls[0]) == 8000

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self, provider, clock):
        service = EmbeddingService(provider, sleep=clock.sleep)

        with pytest.raises(ValueError):
            await service.embed("   \n  ")

        assert provider.embed_calls == []
