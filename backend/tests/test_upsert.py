"""
Tests for the vector upsert boundary.
"""
import pytest

from chatgenius.errors import EmbeddingLengthMismatch, UpsertFailed
from chatgenius.pipeline.upsert import upsert_record
from chatgenius.schemas.record import RecordMetadata
from conftest import FakeVectorIndex, bag_of_words_vector


def _metadata(**kwargs) -> RecordMetadata:
    data = {"record_id": "m1", "user_id": "u1", "content": "hello world", "timestamp": 1000}
    data.update(kwargs)
    return RecordMetadata(**data)


class TestUpsertRecord:
    """Tests for upsert_record."""

    @pytest.mark.asyncio
    async def test_stores_flat_metadata(self):
        index = FakeVectorIndex("test")

        await upsert_record(index, "m1", bag_of_words_vector("hello"), _metadata(workspace_id="W1"))

        _, metadata = index.records["m1"]
        assert metadata["record_id"] == "m1"
        assert metadata["workspace_id"] == "W1"
        assert metadata["message_type"] == "message"
        assert metadata["source"] == "workspace-search"
        assert all(isinstance(value, (str, int, float)) for value in metadata.values())

    @pytest.mark.asyncio
    async def test_truncates_content(self):
        index = FakeVectorIndex("test")

        await upsert_record(index, "m1", bag_of_words_vector("x"), _metadata(content="y" * 5000))

        _, metadata = index.records["m1"]
        assert len(metadata["content"]) == 1000

    @pytest.mark.asyncio
    async def test_wrong_length_never_reaches_index(self):
        index = FakeVectorIndex("test")

        with pytest.raises(EmbeddingLengthMismatch):
            await upsert_record(index, "m1", [0.1] * 10, _metadata())

        assert index.upsert_calls == []

    @pytest.mark.asyncio
    async def test_index_error_wrapped(self):
        index = FakeVectorIndex("test")
        index.fail_upserts = True

        with pytest.raises(UpsertFailed) as exc_info:
            await upsert_record(index, "m1", bag_of_words_vector("x"), _metadata())

        assert exc_info.value.record_id == "m1"
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_last_write_wins(self):
        index = FakeVectorIndex("test")

        await upsert_record(index, "m1", bag_of_words_vector("x"), _metadata(content="first"))
        await upsert_record(index, "m1", bag_of_words_vector("x"), _metadata(content="second"))

        assert len(index.records) == 1
        assert index.records["m1"][1]["content"] == "second"
