"""
Celery task for live message ingestion.
Called when the chat client reports a newly created message.
"""
import asyncio
import logging
from typing import Any, Dict

from chatgenius.config import settings
from chatgenius.context import open_pipeline_context
from chatgenius.pipeline.ingestion import ingest_message
from chatgenius.schemas.message import Message
from chatgenius.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="ingest_message", bind=True)
def ingest_message_task(self, message: Dict[str, Any], workspace_id: str, channel_id: str) -> Dict[str, Any]:
    """
    Embed one message into the vector indexes.

    Args:
        message: Message payload (camelCase or snake_case keys)
        workspace_id: Workspace the message belongs to
        channel_id: Channel the message belongs to

    Returns:
        IngestionOutcome as a dict
    """
    parsed = Message.model_validate(message)
    outcome = asyncio.run(_ingest_message_async(parsed, workspace_id, channel_id))
    return outcome.model_dump(mode="json")


async def _ingest_message_async(message: Message, workspace_id: str, channel_id: str):
    async with open_pipeline_context(settings) as ctx:
        return await ingest_message(ctx, message, workspace_id, channel_id)
