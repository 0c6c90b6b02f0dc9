"""
Celery task for bulk re-embedding of the store of record.
Admin-triggered; never part of the live request path.

A running migration is stopped by setting a Redis flag keyed by its task id.
The task polls the flag and cancels the job between items.
"""
import asyncio
import logging
from typing import Any, Dict

import redis
import redis.asyncio as aioredis

from chatgenius.config import settings
from chatgenius.context import open_pipeline_context
from chatgenius.pipeline.migration import MigrationJob
from chatgenius.schemas.record import IndexTarget
from chatgenius.workers.celery_app import celery_app

logger = logging.getLogger(__name__)

CANCEL_FLAG_TTL_SECONDS = 24 * 60 * 60


def cancel_key(job_id: str) -> str:
    return f"migration:cancel:{job_id}"


def request_migration_cancel(redis_url: str, job_id: str) -> None:
    """Set the cancel flag for a migration. Blocking; run off the event loop."""
    r = redis.from_url(redis_url)
    try:
        r.set(cancel_key(job_id), 1, ex=CANCEL_FLAG_TTL_SECONDS)
    finally:
        r.close()


async def watch_for_cancel(job: MigrationJob, client: aioredis.Redis, job_id: str, poll_seconds: float) -> None:
    """
    Poll the cancel flag until it is set or the job stops on its own.
    Redis errors are logged and polling continues.
    """
    key = cancel_key(job_id)
    while not job.cancel_event.is_set():
        try:
            if await client.exists(key):
                logger.info(f"Cancel requested for migration {job_id}")
                job.cancel()
                return
        except redis.RedisError as e:
            logger.warning(f"Could not read cancel flag for migration {job_id}: {e}")
        await asyncio.sleep(poll_seconds)


@celery_app.task(name="migrate_index", bind=True)
def migrate_task(self, target: str, delete_existing: bool = False) -> Dict[str, Any]:
    """
    Rebuild one vector index from Firebase.

    Args:
        target: "workspace" or "agent"
        delete_existing: Wipe the index before re-embedding

    Returns:
        MigrationSummary as a dict
    """
    index_target = IndexTarget(target)
    job_id = self.request.id
    logger.info(f"Starting migration of {index_target.value} index (job: {job_id}, delete_existing: {delete_existing})")
    summary = asyncio.run(_migrate_async(index_target, delete_existing, job_id))
    return summary.model_dump(mode="json")


async def _migrate_async(target: IndexTarget, delete_existing: bool, job_id: str):
    async with open_pipeline_context(settings) as ctx:
        job = MigrationJob(ctx, target, delete_existing=delete_existing, job_id=job_id)
        client = aioredis.from_url(settings.redis_url)
        watcher = asyncio.create_task(
            watch_for_cancel(job, client, job_id, settings.migration_cancel_poll_seconds)
        )
        try:
            return await job.run()
        finally:
            watcher.cancel()
            await asyncio.gather(watcher, return_exceptions=True)
            await client.aclose()
