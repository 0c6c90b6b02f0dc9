"""
Workspace AI assistant endpoint.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from chatgenius.auth.dependencies import AuthenticatedUser, get_current_user
from chatgenius.context import PipelineContext, get_pipeline_context
from chatgenius.errors import ScopeRequired
from chatgenius.pipeline.assistant import AssistantPreferences, answer_with_workspace_context

logger = logging.getLogger(__name__)

router = APIRouter()


class AssistantChatRequest(BaseModel):
    """Request schema for an assistant question."""
    question: str = Field(..., min_length=1)
    workspace_id: str = Field(..., min_length=1)
    preferences: Optional[AssistantPreferences] = None


class AssistantChatResponse(BaseModel):
    answer: str


@router.post("/chat", response_model=AssistantChatResponse)
async def assistant_chat(
    request: AssistantChatRequest,
    ctx: PipelineContext = Depends(get_pipeline_context),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """
    Answer a question using workspace messages as context.

    Retrieval failures never fail the request: the assistant is told no
    workspace context is available instead.
    """
    try:
        answer = await answer_with_workspace_context(
            ctx, request.question, request.workspace_id, request.preferences
        )
    except (ScopeRequired, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        logger.error(f"Assistant chat failed for user {current_user.uid}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get response"
        )

    return AssistantChatResponse(answer=answer)
