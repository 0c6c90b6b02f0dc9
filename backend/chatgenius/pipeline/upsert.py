"""
Vector upsert.
Validates and flattens a record, then writes it to a vector index.
"""
import logging
from typing import Sequence

from chatgenius.errors import EmbeddingLengthMismatch, UpsertFailed
from chatgenius.schemas.record import RecordMetadata
from chatgenius.utils.metrics import records_upserted_total, upsert_failures_total
from chatgenius.vector_store.base import VectorIndex

logger = logging.getLogger(__name__)


async def upsert_record(
    index: VectorIndex,
    record_id: str,
    vector: Sequence[float],
    metadata: RecordMetadata,
    dimension: int = 1536,
    content_max_chars: int = 1000,
) -> None:
    """
    Insert or replace one embedding record. Last write wins.

    Args:
        index: Target vector index
        record_id: Record ID (message ID or ``bio-<userId>``)
        vector: Embedding vector
        metadata: Record metadata; ``content`` is truncated before storage
        dimension: Required vector length
        content_max_chars: Maximum stored content length

    Raises:
        EmbeddingLengthMismatch: If the vector has the wrong length
        ValueError: If metadata cannot be flattened
        UpsertFailed: If the index write fails
    """
    if len(vector) != dimension:
        raise EmbeddingLengthMismatch(dimension, len(vector))

    stored = metadata.model_copy(update={
        "record_id": record_id,
        "content": metadata.content[:content_max_chars],
    })
    flat = stored.to_index_metadata()

    try:
        await index.upsert(record_id, list(vector), flat)
    except Exception as e:
        upsert_failures_total.labels(index=index.name).inc()
        raise UpsertFailed(record_id, str(e)) from e

    records_upserted_total.labels(index=index.name).inc()
    logger.debug(f"Upserted record {record_id} into {index.name}")
