"""
AI agent persona endpoints.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from chatgenius.auth.dependencies import AuthenticatedUser, get_current_user
from chatgenius.context import PipelineContext, get_pipeline_context
from chatgenius.pipeline.persona import generate_agent_response, generate_persona_summary

logger = logging.getLogger(__name__)

router = APIRouter()


class GeneratePersonaResponse(BaseModel):
    summary: str


class AgentRespondRequest(BaseModel):
    """Request schema for a reply on behalf of a user."""
    user_id: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)


class AgentRespondResponse(BaseModel):
    response: str


@router.post("/generate-persona", response_model=GeneratePersonaResponse)
async def generate_persona(
    ctx: PipelineContext = Depends(get_pipeline_context),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """
    Summarize the caller's persona from their indexed bio and messages
    and store it on their profile.
    """
    try:
        summary = await generate_persona_summary(ctx, current_user.uid)
    except Exception as e:
        logger.error(f"Persona generation failed for user {current_user.uid}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate persona summary"
        )
    return GeneratePersonaResponse(summary=summary)


@router.post("/respond", response_model=AgentRespondResponse)
async def respond(
    request: AgentRespondRequest,
    ctx: PipelineContext = Depends(get_pipeline_context),
    current_user: AuthenticatedUser = Depends(get_current_user)
):
    """
    Generate a reply in the voice of ``user_id``.
    """
    try:
        response = await generate_agent_response(ctx, request.user_id, request.message)
    except Exception as e:
        logger.error(f"Agent response failed for user {request.user_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate response"
        )
    return AgentRespondResponse(response=response)
