"""
Ingestion trigger.

Turns one chat message (or a user bio) into embedding records: filter,
fetch the author profile, embed once, upsert into every target index.
Per-record failures are logged and reported in an IngestionOutcome,
never raised.
"""
import logging
import time
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Tuple

from chatgenius.errors import ProfileFetchFailed
from chatgenius.pipeline.upsert import upsert_record
from chatgenius.schemas.message import Message, UserProfile, now_ms
from chatgenius.schemas.record import (
    SOURCE_FOR_TARGET,
    IndexTarget,
    IngestionOutcome,
    IngestionStatus,
    MessageKind,
    RecordMetadata,
)
from chatgenius.utils.logging import log_ingestion_failed, log_message_ingested
from chatgenius.utils.metrics import messages_ingested_total

if TYPE_CHECKING:
    from chatgenius.context import PipelineContext

logger = logging.getLogger(__name__)

BIO_CONTEXT = "bio"


def qualifies(message: Message) -> bool:
    """Only non-empty text messages are embedded."""
    return message.type == "text" and bool(message.content and message.content.strip())


def build_context(workspace_id: str, channel_id: str, thread_id: Optional[str] = None) -> str:
    """Human-readable locator stored with each record."""
    context = f"workspace:{workspace_id}/channel:{channel_id}"
    if thread_id:
        context += f"/thread:{thread_id}"
    return context


def bio_record_id(user_id: str) -> str:
    return f"bio-{user_id}"


def default_targets(ctx: "PipelineContext") -> List[IndexTarget]:
    """Indexes a live message is written to."""
    if ctx.agent_index_live_sync:
        return [IndexTarget.WORKSPACE, IndexTarget.AGENT]
    return [IndexTarget.WORKSPACE]


async def fetch_profile(ctx: "PipelineContext", user_id: str) -> Optional[UserProfile]:
    """
    Look up the author profile. Failures are logged and yield None so
    ingestion can proceed with empty profile fields.
    """
    if not user_id:
        return None
    try:
        return await ctx.profile_store.get_profile(user_id)
    except Exception as e:
        error = ProfileFetchFailed(user_id, str(e))
        logger.warning(str(error), extra={"event": "profile_fetch_failed", "user_id": user_id})
        return None


async def _embed_and_upsert(
    ctx: "PipelineContext",
    record_id: str,
    text: str,
    metadata: RecordMetadata,
    targets: Sequence[IndexTarget],
) -> None:
    vector = await ctx.embedder.embed(text)
    for target in targets:
        await upsert_record(
            ctx.index(target),
            record_id,
            vector,
            metadata.model_copy(update={"source": SOURCE_FOR_TARGET[target]}),
            dimension=ctx.embedding_dimension,
            content_max_chars=ctx.metadata_content_max_chars,
        )


def _failed(record_id: str, error: Exception, start_time: float, **ids) -> IngestionOutcome:
    log_ingestion_failed(
        logger, record_id, str(error),
        duration_ms=(time.time() - start_time) * 1000,
        error_type=type(error).__name__,
        **ids
    )
    messages_ingested_total.labels(status=IngestionStatus.FAILED.value).inc()
    return IngestionOutcome(record_id=record_id, status=IngestionStatus.FAILED, error=str(error))


async def ingest_message(
    ctx: "PipelineContext",
    message: Message,
    workspace_id: str,
    channel_id: str,
    targets: Optional[Sequence[IndexTarget]] = None,
) -> IngestionOutcome:
    """
    Embed and index one chat message.

    Args:
        ctx: Pipeline context
        message: Message to ingest (thread replies carry ``thread_id``)
        workspace_id: Workspace the message belongs to
        channel_id: Channel the message belongs to
        targets: Indexes to write; defaults to the live-sync targets

    Returns:
        IngestionOutcome with status ingested, skipped or failed
    """
    record_id = message.id
    if not qualifies(message):
        logger.debug(f"Skipping message {record_id} (type: {message.type})")
        messages_ingested_total.labels(status=IngestionStatus.SKIPPED.value).inc()
        return IngestionOutcome(record_id=record_id, status=IngestionStatus.SKIPPED)

    targets = list(targets) if targets is not None else default_targets(ctx)
    start_time = time.time()
    try:
        profile = await fetch_profile(ctx, message.user_id)
        metadata = RecordMetadata(
            record_id=record_id,
            user_id=message.user_id,
            content=message.content,
            timestamp=message.timestamp,
            context=build_context(workspace_id, channel_id, message.thread_id),
            message_type=MessageKind.MESSAGE,
            workspace_id=workspace_id,
            channel_id=channel_id,
            thread_id=message.thread_id or "",
        ).with_profile(profile)
        await _embed_and_upsert(ctx, record_id, message.content, metadata, targets)
    except Exception as e:
        return _failed(record_id, e, start_time, workspace_id=workspace_id, user_id=message.user_id)

    log_message_ingested(
        logger, record_id,
        workspace_id=workspace_id,
        user_id=message.user_id,
        duration_ms=(time.time() - start_time) * 1000,
        indexes=[target.value for target in targets]
    )
    messages_ingested_total.labels(status=IngestionStatus.INGESTED.value).inc()
    return IngestionOutcome(record_id=record_id, status=IngestionStatus.INGESTED)


async def ingest_bio(
    ctx: "PipelineContext",
    user_id: str,
    profile: Optional[UserProfile] = None,
) -> IngestionOutcome:
    """
    Embed a user's bio into the agent index as ``bio-<userId>``.

    The profile is fetched when not given. An empty bio is skipped.
    """
    record_id = bio_record_id(user_id)
    start_time = time.time()
    try:
        if profile is None:
            profile = await ctx.profile_store.get_profile(user_id)
        bio = (profile.bio or "").strip() if profile else ""
        if not bio:
            messages_ingested_total.labels(status=IngestionStatus.SKIPPED.value).inc()
            return IngestionOutcome(record_id=record_id, status=IngestionStatus.SKIPPED)

        metadata = RecordMetadata(
            record_id=record_id,
            user_id=user_id,
            content=bio,
            timestamp=now_ms(),
            context=BIO_CONTEXT,
            message_type=MessageKind.BIO,
        ).with_profile(profile)
        await _embed_and_upsert(ctx, record_id, bio, metadata, [IndexTarget.AGENT])
    except Exception as e:
        return _failed(record_id, e, start_time, user_id=user_id)

    log_message_ingested(
        logger, record_id,
        user_id=user_id,
        duration_ms=(time.time() - start_time) * 1000,
        indexes=[IndexTarget.AGENT.value]
    )
    messages_ingested_total.labels(status=IngestionStatus.INGESTED.value).inc()
    return IngestionOutcome(record_id=record_id, status=IngestionStatus.INGESTED)


async def ingest_many(
    ctx: "PipelineContext",
    items: Iterable[Tuple[Message, str, str]],
    targets: Optional[Sequence[IndexTarget]] = None,
) -> List[IngestionOutcome]:
    """
    Ingest a batch of ``(message, workspace_id, channel_id)`` tuples in order.
    One failing message never stops the rest.
    """
    outcomes = []
    for message, workspace_id, channel_id in items:
        outcomes.append(await ingest_message(ctx, message, workspace_id, channel_id, targets))

    failed = sum(1 for outcome in outcomes if outcome.status == IngestionStatus.FAILED)
    if failed:
        logger.warning(f"Batch ingestion finished with {failed}/{len(outcomes)} failures")
    return outcomes
