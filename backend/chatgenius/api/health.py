"""
Health check endpoint.
Verifies Redis (Celery broker) and vector index connectivity.
"""
import asyncio

from fastapi import APIRouter, Depends, HTTPException
import redis

from chatgenius.config import settings
from chatgenius.context import PipelineContext, get_pipeline_context

router = APIRouter()


def _ping_redis(url: str) -> bool:
    r = redis.from_url(url)
    try:
        return bool(r.ping())
    finally:
        r.close()


@router.get("")
async def health_check(ctx: PipelineContext = Depends(get_pipeline_context)):
    """
    Health check endpoint.
    Returns status of the Redis broker and each vector index.
    """
    health_status = {
        "status": "healthy",
        "redis": "unknown",
        "indexes": {}
    }

    # Check Redis
    try:
        await asyncio.to_thread(_ping_redis, settings.redis_url)
        health_status["redis"] = "connected"
    except Exception as e:
        health_status["redis"] = f"error: {str(e)}"
        health_status["status"] = "unhealthy"

    # Check vector indexes
    for target, index in ctx.indexes.items():
        if await index.ping():
            health_status["indexes"][target.value] = "connected"
        else:
            health_status["indexes"][target.value] = "unreachable"
            health_status["status"] = "unhealthy"

    if health_status["status"] == "unhealthy":
        raise HTTPException(status_code=503, detail=health_status)

    return health_status
