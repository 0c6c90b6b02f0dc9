"""
Embedding pipeline: embed, upsert, ingest, retrieve, migrate.
"""
from chatgenius.pipeline.embedding import EmbeddingService, normalize_text
from chatgenius.pipeline.ingestion import ingest_bio, ingest_many, ingest_message
from chatgenius.pipeline.migration import MigrationJob, delete_scope, migrate_all
from chatgenius.pipeline.retrieval import query_context, query_context_or_empty
from chatgenius.pipeline.retry import RetryPolicy, with_retry
from chatgenius.pipeline.upsert import upsert_record

__all__ = [
    "EmbeddingService",
    "normalize_text",
    "RetryPolicy",
    "with_retry",
    "upsert_record",
    "ingest_message",
    "ingest_bio",
    "ingest_many",
    "query_context",
    "query_context_or_empty",
    "MigrationJob",
    "migrate_all",
    "delete_scope",
]
