"""
Live ingestion endpoint.
The chat client reports each new message here; embedding runs in a Celery worker.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from chatgenius.auth.dependencies import AuthenticatedUser, get_current_user
from chatgenius.pipeline.ingestion import qualifies
from chatgenius.schemas.message import Message
from chatgenius.tasks.ingest_message import ingest_message_task

logger = logging.getLogger(__name__)

router = APIRouter()


class SyncMessageRequest(Message):
    """A newly created message; workspace and channel are required."""
    workspace_id: str = Field(..., alias="workspaceId", min_length=1)
    channel_id: str = Field(..., alias="channelId", min_length=1)


class SyncMessageResponse(BaseModel):
    """Response schema for message sync."""
    message_id: str
    status: str
    task_id: str = ""


@router.post("/sync", response_model=SyncMessageResponse, status_code=status.HTTP_202_ACCEPTED)
async def sync_message(
    request: SyncMessageRequest,
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """
    Enqueue embedding of one message into the vector indexes.

    Non-qualifying messages (non-text or empty) are acknowledged as skipped
    without enqueueing anything.

    Requires valid Firebase JWT token. Callers may only sync their own messages.
    """
    if request.user_id != current_user.uid and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot sync messages authored by another user"
        )

    if not qualifies(request):
        return SyncMessageResponse(message_id=request.id, status="skipped")

    try:
        task = ingest_message_task.delay(
            request.model_dump(mode="json", exclude={"workspace_id", "channel_id"}),
            request.workspace_id,
            request.channel_id
        )
    except Exception as e:
        logger.error(f"Failed to enqueue ingestion for message {request.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to enqueue message ingestion"
        )

    return SyncMessageResponse(message_id=request.id, status="queued", task_id=str(task.id))
