"""
Retrieval query.
Embeds a query and returns the nearest records inside a mandatory scope.
"""
import logging
from typing import TYPE_CHECKING, List, Optional

from chatgenius.errors import PipelineError, ScopeRequired
from chatgenius.schemas.record import RecordMetadata, RetrievalResult, ScopeFilter
from chatgenius.utils.metrics import retrieval_queries_total, retrieval_results_dropped_total

if TYPE_CHECKING:
    from chatgenius.context import PipelineContext

logger = logging.getLogger(__name__)

MAX_QUERY_LIMIT = 100


def _to_result(record_id: str, score: float, metadata: RecordMetadata) -> RetrievalResult:
    return RetrievalResult(
        id=record_id,
        content=metadata.content,
        score=score,
        user_id=metadata.user_id,
        timestamp=metadata.timestamp,
        context=metadata.context,
        message_type=metadata.message_type,
        workspace_id=metadata.workspace_id,
        user_profile=metadata.profile(),
    )


async def query_context(
    ctx: "PipelineContext",
    query_text: str,
    scope: Optional[ScopeFilter],
    limit: Optional[int] = None,
) -> List[RetrievalResult]:
    """
    Return up to ``limit`` records most similar to ``query_text``.

    Args:
        ctx: Pipeline context
        query_text: Free text to search for
        scope: Tenant boundary; workspace scope or user scope
        limit: Maximum results (default from context, 1..100)

    Returns:
        Results sorted by score descending; [] when nothing matches

    Raises:
        ScopeRequired: If scope is missing or ambiguous (before any network call)
        ValueError: If limit is out of range or the query is empty
        EmbeddingProviderError, EmbeddingLengthMismatch: From the embedding step
    """
    if scope is None:
        raise ScopeRequired()
    scope.validate_scope()

    if limit is None:
        limit = ctx.default_query_limit
    if limit < 1 or limit > MAX_QUERY_LIMIT:
        raise ValueError(f"limit must be between 1 and {MAX_QUERY_LIMIT}")

    scope_type = scope.target.value
    retrieval_queries_total.labels(scope=scope_type).inc()

    vector = await ctx.embedder.embed(query_text)
    matches = await ctx.index(scope.target).query(vector, scope.index_filter(), limit)

    results = []
    for match in matches:
        # Never trust the index filter alone
        if not scope.matches(match.metadata):
            retrieval_results_dropped_total.labels(scope=scope_type).inc()
            logger.warning(f"Dropped out-of-scope match {match.id} from {scope_type} query")
            continue
        metadata = RecordMetadata.from_index_metadata({"record_id": match.id, **match.metadata})
        results.append(_to_result(match.id, match.score, metadata))

    results.sort(key=lambda result: result.score, reverse=True)
    logger.info(f"Retrieved {len(results[:limit])} records for {scope_type} scope")
    return results[:limit]


async def query_context_or_empty(
    ctx: "PipelineContext",
    query_text: str,
    scope: Optional[ScopeFilter],
    limit: Optional[int] = None,
) -> List[RetrievalResult]:
    """
    Like query_context, but provider and index failures degrade to [].
    Scope errors are caller bugs and still raise.
    """
    if scope is None:
        raise ScopeRequired()
    scope.validate_scope()
    try:
        return await query_context(ctx, query_text, scope, limit)
    except ScopeRequired:
        raise
    except (PipelineError, ValueError) as e:
        logger.warning(f"Retrieval failed, continuing without context: {e}")
        return []
    except Exception as e:
        logger.error(f"Unexpected retrieval failure, continuing without context: {e}", exc_info=True)
        return []


def sort_chronologically(results: List[RetrievalResult]) -> List[RetrievalResult]:
    """Oldest first, for display in prompts."""
    return sorted(results, key=lambda result: result.timestamp)
