"""
Semantic search over indexed chat messages.
Every query is confined to one workspace or to the caller's own records.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from chatgenius.auth.dependencies import AuthenticatedUser, get_current_user
from chatgenius.context import PipelineContext, get_pipeline_context
from chatgenius.errors import ScopeRequired
from chatgenius.pipeline.retrieval import MAX_QUERY_LIMIT, query_context
from chatgenius.schemas.record import MessageKind, RetrievalResult, ScopeFilter

logger = logging.getLogger(__name__)

router = APIRouter()


class ContextSearchRequest(BaseModel):
    """Request schema for context search."""
    query: str = Field(..., min_length=1)
    workspace_id: Optional[str] = None
    user_id: Optional[str] = None
    message_type: Optional[MessageKind] = None
    limit: Optional[int] = Field(None, ge=1, le=MAX_QUERY_LIMIT)


class ContextSearchResponse(BaseModel):
    """Schema for search response."""
    query: str
    results: List[RetrievalResult]
    total_results: int


@router.post("/context", response_model=ContextSearchResponse)
async def search_context(
    request: ContextSearchRequest,
    ctx: PipelineContext = Depends(get_pipeline_context),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """
    Semantic search scoped to a workspace or to a user.

    Requires valid Firebase JWT token. A user scope is limited to the
    caller's own records unless the caller is an admin.
    """
    if not request.query.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query text cannot be empty"
        )

    if request.user_id and request.user_id != current_user.uid and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot search another user's records"
        )

    scope = ScopeFilter(
        workspace_id=request.workspace_id,
        user_id=request.user_id,
        message_type=request.message_type
    )

    try:
        results = await query_context(ctx, request.query, scope, request.limit)
    except (ScopeRequired, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.error(f"Context search failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Search failed: {str(e)}"
        )

    return ContextSearchResponse(
        query=request.query,
        results=results,
        total_results=len(results)
    )
