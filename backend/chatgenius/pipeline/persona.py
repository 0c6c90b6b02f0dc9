"""
AI agent persona.

Summarizes a user's persona from their indexed bio and messages, and
answers on the user's behalf using user-scoped retrieval.
"""
import logging
from typing import TYPE_CHECKING, List

from chatgenius.pipeline.retrieval import query_context, query_context_or_empty
from chatgenius.schemas.record import MessageKind, RetrievalResult, ScopeFilter

if TYPE_CHECKING:
    from chatgenius.context import PipelineContext

logger = logging.getLogger(__name__)

NOT_ENOUGH_DATA = "Not enough data to generate a persona summary. Start chatting to build your persona!"
NO_CONTEXT = "No context available"

PERSONA_QUERY = "communication style, interests, habits and personality"
PERSONA_MESSAGE_LIMIT = 100
PERSONA_PROMPT_MESSAGES = 30

PERSONA_SYSTEM_PROMPT = (
    "You are an expert at analyzing communication patterns and creating insightful persona summaries. "
    "Keep the summary concise but meaningful, focusing on the user's unique traits and patterns."
)

AGENT_SYSTEM_PROMPT = """You are an AI agent that responds on behalf of a user. You should mimic their communication style and personality based on their past messages and bio.

Persona summary:
{persona}

Here is the relevant context from their past messages and bio:
{context}

Use this context to inform your response style, tone, and personality. The response should feel natural and consistent with how the user typically communicates."""


def build_persona_prompt(bio: str, messages: List[str]) -> str:
    lines = "\n".join(messages[:PERSONA_PROMPT_MESSAGES])
    prompt = (
        "Based on the following user messages and interactions, create a concise summary of their persona, "
        "communication style, and typical behavior. Focus on patterns, preferences, and characteristic traits.\n\n"
    )
    if bio:
        prompt += f"User Bio:\n{bio}\n\n"
    prompt += (
        f"User Messages:\n{lines}\n\n"
        "Generate a natural, conversational summary that captures the essence of this user's persona. "
        "If you notice any particular patterns in their communication style, work habits, or interests, highlight those."
    )
    return prompt


def format_agent_context(results: List[RetrievalResult]) -> str:
    """One line per record: ``Bio: ...`` or ``Past Message: ...``."""
    lines = []
    for result in results:
        label = "Bio" if result.message_type == MessageKind.BIO else "Past Message"
        lines.append(f"{label}: {result.content}")
    return "\n".join(lines)


async def generate_persona_summary(ctx: "PipelineContext", user_id: str) -> str:
    """
    Summarize a user's persona and store it in the profile store.

    Args:
        ctx: Pipeline context
        user_id: User to summarize

    Returns:
        The summary, or a fixed message when the user has no indexed data

    Raises:
        Exception: If retrieval, the completion or the store write fails
    """
    bio_results = await query_context(
        ctx, PERSONA_QUERY,
        ScopeFilter(user_id=user_id, message_type=MessageKind.BIO),
        limit=1
    )
    message_results = await query_context(
        ctx, PERSONA_QUERY,
        ScopeFilter(user_id=user_id, message_type=MessageKind.MESSAGE),
        limit=PERSONA_MESSAGE_LIMIT
    )

    bio = bio_results[0].content if bio_results else ""
    messages = [result.content for result in message_results if result.content]
    if not bio and not messages:
        logger.info(f"No indexed data for user {user_id}, skipping persona summary")
        return NOT_ENOUGH_DATA

    summary = await ctx.llm.complete(
        PERSONA_SYSTEM_PROMPT,
        build_persona_prompt(bio, messages),
        model=ctx.chat_model
    )
    await ctx.profile_store.save_persona(user_id, summary)
    logger.info(f"Generated persona summary for user {user_id} ({len(messages)} messages)")
    return summary


async def generate_agent_response(ctx: "PipelineContext", user_id: str, message: str) -> str:
    """
    Reply to ``message`` in the voice of ``user_id``.

    Context retrieval failures degrade to "No context available".
    """
    results = await query_context_or_empty(
        ctx, message, ScopeFilter(user_id=user_id), limit=ctx.agent_context_limit
    )
    context = format_agent_context(results) or NO_CONTEXT

    try:
        persona = await ctx.profile_store.get_persona(user_id)
    except Exception as e:
        logger.warning(f"Could not load persona for user {user_id}: {e}")
        persona = None

    system_prompt = AGENT_SYSTEM_PROMPT.format(
        persona=persona or "Not available",
        context=context
    )
    return await ctx.llm.complete(
        system_prompt,
        f'Generate a response to this message: "{message}"',
        model=ctx.chat_model
    )
