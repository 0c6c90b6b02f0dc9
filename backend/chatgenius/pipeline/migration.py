"""
Bulk migration job.

Traversal (lazy async iterators over the store of record) is kept apart
from ingestion (a bounded pool of workers pulling from one iterator).
Record ids are deterministic, so re-running a migration is idempotent.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, AsyncIterator, Callable, Optional

from chatgenius.pipeline.ingestion import bio_record_id, ingest_bio, ingest_message
from chatgenius.schemas.message import Message, UserProfile
from chatgenius.schemas.record import (
    IndexTarget,
    IngestionStatus,
    MessageKind,
    MigrationSummary,
    ScopeFilter,
)
from chatgenius.stores.base import MessageStore, ProfileStore
from chatgenius.utils.logging import (
    log_destructive_operation,
    log_migration_completed,
    log_migration_started,
)
from chatgenius.utils.metrics import migration_duration_seconds

if TYPE_CHECKING:
    from chatgenius.context import PipelineContext

logger = logging.getLogger(__name__)

ErrorHook = Callable[[str], None]


@dataclass(frozen=True)
class MigrationItem:
    """One unit of migration work: a message or a user bio."""
    kind: MessageKind
    record_id: str
    workspace_id: str = ""
    channel_id: str = ""
    user_id: str = ""
    message: Optional[Message] = None
    profile: Optional[UserProfile] = None


def _report(on_error: Optional[ErrorHook], description: str, error: Exception) -> None:
    logger.error(f"Traversal failed for {description}: {error}")
    if on_error is not None:
        on_error(f"{description}: {error}")


async def _iter_channel(
    store: MessageStore,
    workspace_id: str,
    channel_id: str,
    author_id: Optional[str] = None,
) -> AsyncIterator[MigrationItem]:
    """Channel messages, then every thread's replies."""
    messages = list(await store.list_messages(workspace_id, channel_id))
    for thread_id in await store.list_thread_ids(workspace_id, channel_id):
        messages.extend(await store.list_thread_messages(workspace_id, channel_id, thread_id))

    for message in messages:
        if author_id is not None and message.user_id != author_id:
            continue
        yield MigrationItem(
            kind=MessageKind.MESSAGE,
            record_id=message.id,
            workspace_id=workspace_id,
            channel_id=channel_id,
            user_id=message.user_id,
            message=message,
        )


async def _iter_workspace(
    store: MessageStore,
    workspace_id: str,
    author_id: Optional[str],
    on_error: Optional[ErrorHook],
) -> AsyncIterator[MigrationItem]:
    for channel_id in await store.list_channel_ids(workspace_id):
        try:
            async for item in _iter_channel(store, workspace_id, channel_id, author_id):
                yield item
        except Exception as e:
            _report(on_error, f"channel {workspace_id}/{channel_id}", e)


async def iter_workspace_items(
    store: MessageStore,
    on_error: Optional[ErrorHook] = None,
) -> AsyncIterator[MigrationItem]:
    """
    Every message in every workspace: workspaces, channels, channel
    messages, then thread replies. A failing workspace is reported
    through ``on_error`` and skipped.
    """
    for workspace_id in await store.list_workspace_ids():
        try:
            async for item in _iter_workspace(store, workspace_id, None, on_error):
                yield item
        except Exception as e:
            _report(on_error, f"workspace {workspace_id}", e)


async def iter_agent_items(
    store: MessageStore,
    profile_store: ProfileStore,
    on_error: Optional[ErrorHook] = None,
    on_user: Optional[Callable[[str], None]] = None,
) -> AsyncIterator[MigrationItem]:
    """
    Per user: the bio (when non-empty), then the messages that user
    authored across the workspaces they belong to. A failing user is
    reported through ``on_error`` and skipped.
    """
    for user_id in await store.list_user_ids():
        if on_user is not None:
            on_user(user_id)
        try:
            profile = await profile_store.get_profile(user_id)
            if profile is not None and profile.bio and profile.bio.strip():
                yield MigrationItem(
                    kind=MessageKind.BIO,
                    record_id=bio_record_id(user_id),
                    user_id=user_id,
                    profile=profile,
                )

            for workspace_id in await store.list_user_workspace_ids(user_id):
                async for item in _iter_workspace(store, workspace_id, user_id, on_error):
                    yield item
        except Exception as e:
            _report(on_error, f"user {user_id}", e)


class MigrationJob:
    """
    Re-embed everything from the store of record into one index.

    Args:
        ctx: Pipeline context
        target: Index to rebuild
        concurrency: Number of workers pulling from the traversal
        delete_existing: Wipe the index first (irreversible, opt-in)
        cancel_event: Set to stop between items
        job_id: Optional background job id for logging
    """

    def __init__(
        self,
        ctx: "PipelineContext",
        target: IndexTarget,
        concurrency: Optional[int] = None,
        delete_existing: bool = False,
        cancel_event: Optional[asyncio.Event] = None,
        job_id: Optional[str] = None,
    ):
        self.ctx = ctx
        self.target = target
        self.concurrency = concurrency if concurrency is not None else ctx.migration_concurrency
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.delete_existing = delete_existing
        self.cancel_event = cancel_event or asyncio.Event()
        self.job_id = job_id
        self.summary = MigrationSummary(target=target)
        self._lock = asyncio.Lock()

    def cancel(self) -> None:
        self.cancel_event.set()

    def _record_error(self, error: str) -> None:
        self.summary.errors.append(error)

    def _count_user(self, user_id: str) -> None:
        self.summary.total_users += 1

    def _items(self) -> AsyncIterator[MigrationItem]:
        if self.target == IndexTarget.WORKSPACE:
            return iter_workspace_items(self.ctx.message_store, on_error=self._record_error)
        return iter_agent_items(
            self.ctx.message_store,
            self.ctx.profile_store,
            on_error=self._record_error,
            on_user=self._count_user,
        )

    async def _next_item(self, items: AsyncIterator[MigrationItem]) -> Optional[MigrationItem]:
        # Async generators cannot be advanced by two tasks at once
        async with self._lock:
            try:
                return await items.__anext__()
            except StopAsyncIteration:
                return None

    async def _process(self, item: MigrationItem) -> None:
        if item.kind == MessageKind.BIO:
            outcome = await ingest_bio(self.ctx, item.user_id, item.profile)
        else:
            outcome = await ingest_message(
                self.ctx, item.message, item.workspace_id, item.channel_id,
                targets=[self.target]
            )

        if outcome.status == IngestionStatus.SKIPPED:
            self.summary.skipped += 1
        elif outcome.status == IngestionStatus.FAILED:
            self._record_error(f"{item.kind.value} {item.record_id}: {outcome.error}")
        else:
            self.summary.total_processed += 1
            if item.kind == MessageKind.BIO:
                self.summary.total_bios += 1
            else:
                self.summary.total_messages += 1

    async def _worker(self, items: AsyncIterator[MigrationItem]) -> None:
        while not self.cancel_event.is_set():
            try:
                item = await self._next_item(items)
            except Exception as e:
                _report(self._record_error, f"{self.target.value} traversal", e)
                return
            if item is None:
                return
            try:
                await self._process(item)
            except Exception as e:
                self._record_error(f"{item.kind.value} {item.record_id}: {e}")

    async def _delete_existing(self) -> None:
        index = self.ctx.index(self.target)
        log_destructive_operation(logger, "delete_all", index.name, job_id=self.job_id)
        try:
            await index.delete_all()
            self.summary.deleted_existing = True
        except Exception as e:
            logger.warning(f"Could not clear index {index.name}: {e}")
            self._record_error(f"index {index.name}: {e}")

    async def run(self) -> MigrationSummary:
        """
        Run the migration to completion or cancellation.

        Returns:
            MigrationSummary with counts and per-item errors
        """
        start_time = time.time()
        log_migration_started(logger, self.target.value, job_id=self.job_id)

        if self.delete_existing:
            await self._delete_existing()

        items = self._items()
        try:
            await asyncio.gather(*(self._worker(items) for _ in range(self.concurrency)))
        finally:
            await items.aclose()

        self.summary.cancelled = self.cancel_event.is_set()
        duration = time.time() - start_time
        status = "cancelled" if self.summary.cancelled else "completed"
        migration_duration_seconds.labels(target=self.target.value, status=status).observe(duration)
        log_migration_completed(
            logger, self.target.value,
            duration_ms=duration * 1000,
            total_processed=self.summary.total_processed,
            error_count=len(self.summary.errors),
            job_id=self.job_id,
            cancelled=self.summary.cancelled,
            total_users=self.summary.total_users,
            total_bios=self.summary.total_bios,
            skipped=self.summary.skipped
        )
        return self.summary


async def migrate_all(
    ctx: "PipelineContext",
    target: IndexTarget,
    delete_existing: bool = False,
    cancel_event: Optional[asyncio.Event] = None,
    job_id: Optional[str] = None,
) -> MigrationSummary:
    """Convenience wrapper around MigrationJob.run."""
    job = MigrationJob(
        ctx, target,
        delete_existing=delete_existing,
        cancel_event=cancel_event,
        job_id=job_id,
    )
    return await job.run()


async def delete_scope(ctx: "PipelineContext", scope: ScopeFilter) -> None:
    """
    Delete every record inside one workspace or user scope. Irreversible.

    Raises:
        ScopeRequired: If the scope is missing or ambiguous
    """
    scope.validate_scope()
    index = ctx.index(scope.target)
    log_destructive_operation(
        logger, "delete_scope", index.name,
        workspace_id=scope.workspace_id,
        user_id=scope.user_id
    )
    await index.delete_many(scope.index_filter())
