"""
Admin endpoints for index maintenance: bulk migrations, migration
cancellation and scoped deletes.
All routes require the ``admin`` custom claim.
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from chatgenius.auth.dependencies import AuthenticatedUser, require_admin
from chatgenius.config import settings
from chatgenius.context import PipelineContext, get_pipeline_context
from chatgenius.errors import ScopeRequired
from chatgenius.pipeline.migration import delete_scope
from chatgenius.schemas.record import IndexTarget, MessageKind, ScopeFilter
from chatgenius.tasks.migrate import migrate_task, request_migration_cancel

logger = logging.getLogger(__name__)

router = APIRouter()


class MigrateRequest(BaseModel):
    """Request schema for a bulk migration."""
    delete_existing: bool = False  # Irreversible: wipes the index first


class MigrateResponse(BaseModel):
    """Response schema for an enqueued migration."""
    message: str
    target: IndexTarget
    task_id: str
    delete_existing: bool


class CancelMigrationResponse(BaseModel):
    message: str
    task_id: str


class DeleteScopeRequest(BaseModel):
    """Exactly one of workspace_id or user_id."""
    workspace_id: Optional[str] = None
    user_id: Optional[str] = None
    message_type: Optional[MessageKind] = None


class DeleteScopeResponse(BaseModel):
    message: str
    index: str


def _enqueue_migration(target: IndexTarget, request: MigrateRequest, current_user: AuthenticatedUser) -> MigrateResponse:
    try:
        task = migrate_task.delay(target.value, request.delete_existing)
    except Exception as e:
        logger.error(f"Failed to enqueue {target.value} migration: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to enqueue migration: {str(e)}"
        )

    logger.info(
        f"Migration of {target.value} index enqueued by {current_user.uid} "
        f"(task: {task.id}, delete_existing: {request.delete_existing})"
    )
    return MigrateResponse(
        message="Migration enqueued",
        target=target,
        task_id=str(task.id),
        delete_existing=request.delete_existing
    )


@router.post("/migrate-messages", response_model=MigrateResponse, status_code=status.HTTP_202_ACCEPTED)
async def migrate_messages(
    request: Optional[MigrateRequest] = None,
    current_user: AuthenticatedUser = Depends(require_admin)
):
    """
    Re-embed every workspace message into the workspace search index.
    """
    return _enqueue_migration(IndexTarget.WORKSPACE, request or MigrateRequest(), current_user)


@router.post("/migrate-ai-agent", response_model=MigrateResponse, status_code=status.HTTP_202_ACCEPTED)
async def migrate_ai_agent(
    request: Optional[MigrateRequest] = None,
    current_user: AuthenticatedUser = Depends(require_admin)
):
    """
    Re-embed every user bio and authored message into the AI agent index.
    """
    return _enqueue_migration(IndexTarget.AGENT, request or MigrateRequest(), current_user)


@router.post(
    "/migrations/{task_id}/cancel",
    response_model=CancelMigrationResponse,
    status_code=status.HTTP_202_ACCEPTED
)
async def cancel_migration(
    task_id: str,
    current_user: AuthenticatedUser = Depends(require_admin)
):
    """
    Ask a running migration to stop after its in-flight items.
    """
    try:
        await asyncio.to_thread(request_migration_cancel, settings.redis_url, task_id)
    except Exception as e:
        logger.error(f"Failed to request cancel of migration {task_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to request cancellation: {str(e)}"
        )

    logger.info(f"Cancel of migration {task_id} requested by {current_user.uid}")
    return CancelMigrationResponse(message="Cancellation requested", task_id=task_id)


@router.post("/delete-scope", response_model=DeleteScopeResponse)
async def delete_records_in_scope(
    request: DeleteScopeRequest,
    ctx: PipelineContext = Depends(get_pipeline_context),
    current_user: AuthenticatedUser = Depends(require_admin)
):
    """
    Delete every record of one workspace or one user. Irreversible.
    """
    scope = ScopeFilter(
        workspace_id=request.workspace_id,
        user_id=request.user_id,
        message_type=request.message_type
    )
    try:
        await delete_scope(ctx, scope)
    except ScopeRequired as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.error(f"Scoped delete failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Delete failed: {str(e)}"
        )

    index_name = ctx.index(scope.target).name
    logger.info(f"Scoped delete on {index_name} performed by {current_user.uid}")
    return DeleteScopeResponse(message="Records deleted", index=index_name)
