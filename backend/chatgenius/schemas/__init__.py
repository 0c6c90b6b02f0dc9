"""
Pydantic schemas for chat entities, embedding records and pipeline results.
"""
from chatgenius.schemas.message import Message, UserProfile
from chatgenius.schemas.record import (
    IndexTarget,
    IngestionOutcome,
    IngestionStatus,
    MessageKind,
    MigrationSummary,
    RecordMetadata,
    RecordSource,
    RetrievalResult,
    ScopeFilter,
)

__all__ = [
    "Message",
    "UserProfile",
    "IndexTarget",
    "IngestionOutcome",
    "IngestionStatus",
    "MessageKind",
    "MigrationSummary",
    "RecordMetadata",
    "RecordSource",
    "RetrievalResult",
    "ScopeFilter",
]
