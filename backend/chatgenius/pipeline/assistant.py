"""
Workspace AI assistant: builds the chat prompt from assistant preferences
and workspace-scoped retrieval results.
"""
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, List, Optional

from pydantic import BaseModel

from chatgenius.pipeline.retrieval import query_context_or_empty, sort_chronologically
from chatgenius.schemas.record import RetrievalResult, ScopeFilter

if TYPE_CHECKING:
    from chatgenius.context import PipelineContext

logger = logging.getLogger(__name__)

NO_WORKSPACE_CONTEXT = (
    "No workspace context is available for this question. "
    "Say so if the answer depends on workspace messages, and do not invent any."
)


class AssistantPreferences(BaseModel):
    """Per-user assistant personalization."""
    personality: str = "helpful"
    tone: str = "professional"
    expertise: str = "general"
    custom_instructions: Optional[str] = None


def _format_line(result: RetrievalResult) -> str:
    author = result.user_profile.display_name or result.user_id or "Unknown"
    when = datetime.fromtimestamp(result.timestamp / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
    return f"[{when}] {author}: {result.content}"


def build_system_prompt(preferences: AssistantPreferences, results: List[RetrievalResult]) -> str:
    prompt = (
        "You are an AI assistant with the following characteristics:\n"
        f"- Personality: {preferences.personality} (be {preferences.personality} in your responses)\n"
        f"- Tone: {preferences.tone} (maintain a {preferences.tone} tone)\n"
        f"- Expertise: {preferences.expertise} (focus on {preferences.expertise} knowledge when relevant)\n\n"
        "Your responses should consistently reflect these characteristics while being helpful and accurate."
    )
    if preferences.custom_instructions:
        prompt += f"\n\nAdditional instructions: {preferences.custom_instructions}"

    if results:
        lines = "\n".join(_format_line(result) for result in sort_chronologically(results))
        prompt += f"\n\nRelevant workspace messages (oldest first):\n{lines}"
    else:
        prompt += f"\n\n{NO_WORKSPACE_CONTEXT}"
    return prompt


def build_assistant_messages(
    question: str,
    results: List[RetrievalResult],
    preferences: Optional[AssistantPreferences] = None,
) -> List[Dict[str, str]]:
    """
    Chat messages for the assistant: one system message carrying
    preferences and context, then the user's question.
    """
    preferences = preferences or AssistantPreferences()
    return [
        {"role": "system", "content": build_system_prompt(preferences, results)},
        {"role": "user", "content": question},
    ]


async def answer_with_workspace_context(
    ctx: "PipelineContext",
    question: str,
    workspace_id: str,
    preferences: Optional[AssistantPreferences] = None,
    limit: Optional[int] = None,
) -> str:
    """
    Answer ``question`` with workspace messages as context. Retrieval
    failures degrade to a prompt that states no context is available.

    Raises:
        ScopeRequired: If workspace_id is empty
    """
    results = await query_context_or_empty(
        ctx, question, ScopeFilter(workspace_id=workspace_id), limit
    )
    if not results:
        logger.info(f"No workspace context for assistant question in {workspace_id}")

    system_message, user_message = build_assistant_messages(question, results, preferences)
    return await ctx.llm.complete(
        system_message["content"],
        user_message["content"],
        model=ctx.assistant_chat_model
    )
