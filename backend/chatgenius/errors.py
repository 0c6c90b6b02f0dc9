"""
Exception taxonomy for the embedding pipeline.

Single-item operations (embed, upsert, query) raise these to their caller.
Bulk operations (ingestion batches, migrations) catch them per item and
record them instead of aborting.
"""
from typing import Optional


class PipelineError(Exception):
    """Base class for all pipeline errors."""


class EmbeddingLengthMismatch(PipelineError):
    """Embedding provider returned a vector with the wrong dimensionality."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Invalid embedding length: expected {expected}, got {actual}")


class EmbeddingProviderError(PipelineError):
    """
    Upstream embedding failure.

    ``transient`` marks failures worth retrying (rate limits, network errors,
    upstream 5xx). Non-transient failures (bad key, bad request) are raised
    immediately.
    """

    def __init__(self, message: str, transient: bool = True):
        self.transient = transient
        super().__init__(message)


class UpsertFailed(PipelineError):
    """Vector index write failed for a record."""

    def __init__(self, record_id: str, reason: Optional[str] = None):
        self.record_id = record_id
        message = f"Failed to upsert record {record_id}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ScopeRequired(PipelineError):
    """A retrieval query was attempted without a tenant scope."""

    def __init__(self, message: str = "A workspace_id or user_id scope is required"):
        super().__init__(message)


class ProfileFetchFailed(PipelineError):
    """User profile lookup failed. Never fatal for ingestion."""

    def __init__(self, user_id: str, reason: Optional[str] = None):
        self.user_id = user_id
        message = f"Failed to fetch profile for user {user_id}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
