"""
Pipeline context: every collaborator the pipeline needs, built once per
process (API) or per task run (worker) and passed explicitly.
"""
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Optional

from fastapi import HTTPException, Request, status

from chatgenius.ai.base import LLMProvider
from chatgenius.config import Settings
from chatgenius.pipeline.embedding import EmbeddingService
from chatgenius.pipeline.retry import RetryPolicy
from chatgenius.schemas.record import IndexTarget
from chatgenius.stores.base import MessageStore, ProfileStore
from chatgenius.vector_store.base import VectorIndex

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """Explicit dependencies of the embedding pipeline."""
    llm: LLMProvider
    embedder: EmbeddingService
    indexes: Dict[IndexTarget, VectorIndex]
    message_store: MessageStore
    profile_store: ProfileStore
    metadata_content_max_chars: int = 1000
    default_query_limit: int = 10
    agent_context_limit: int = 10
    agent_index_live_sync: bool = True
    migration_concurrency: int = 4
    chat_model: Optional[str] = None
    assistant_chat_model: Optional[str] = None

    def index(self, target: IndexTarget) -> VectorIndex:
        return self.indexes[target]

    @property
    def embedding_dimension(self) -> int:
        return self.embedder.dimension


def _build_indexes(settings: Settings, engine=None) -> Dict[IndexTarget, VectorIndex]:
    backend = settings.vector_backend.lower()

    if backend == "pinecone":
        from pinecone import Pinecone
        from chatgenius.vector_store.pinecone_index import PineconeIndex

        if not settings.pinecone_api_key:
            raise ValueError("Pinecone API key not configured. Set PINECONE_API_KEY environment variable.")
        client = Pinecone(api_key=settings.pinecone_api_key)
        logger.info(f"Using Pinecone indexes: {settings.pinecone_index}, {settings.pinecone_ai_agent_index}")
        return {
            IndexTarget.WORKSPACE: PineconeIndex(client, settings.pinecone_index),
            IndexTarget.AGENT: PineconeIndex(client, settings.pinecone_ai_agent_index),
        }

    if backend == "pgvector":
        from chatgenius.database import build_session_factory
        from chatgenius.vector_store.pgvector_index import PgVectorIndex

        session_factory = build_session_factory(engine)
        logger.info("Using pgvector indexes")
        return {
            IndexTarget.WORKSPACE: PgVectorIndex(session_factory, IndexTarget.WORKSPACE.value),
            IndexTarget.AGENT: PgVectorIndex(session_factory, IndexTarget.AGENT.value),
        }

    raise ValueError(
        f"Invalid vector backend: {settings.vector_backend}. "
        f"Must be one of: 'pinecone', 'pgvector'"
    )


def get_pipeline_context(request: Request) -> PipelineContext:
    """FastAPI dependency: the context opened by the application lifespan."""
    ctx = getattr(request.app.state, "pipeline", None)
    if ctx is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pipeline not initialized"
        )
    return ctx


@asynccontextmanager
async def open_pipeline_context(settings: Settings) -> AsyncIterator[PipelineContext]:
    """
    Build a PipelineContext from settings and release its clients on exit.

    Async clients are bound to the running event loop, so workers open one
    context per task run.
    """
    from chatgenius.ai.factory import get_llm_provider
    from chatgenius.auth.firebase import initialize_firebase
    from chatgenius.stores.firebase_store import FirebaseStore

    engine = None
    if settings.vector_backend.lower() == "pgvector":
        from chatgenius.database import build_engine, init_db

        engine = build_engine(settings.database_url)
        await init_db(engine)

    llm = get_llm_provider(settings)
    try:
        store = FirebaseStore(initialize_firebase(settings))
        embedder = EmbeddingService(
            llm,
            dimension=settings.embedding_dimension,
            max_chars=settings.embedding_max_chars,
            max_attempts=settings.embedding_max_attempts,
            retry_policy=RetryPolicy(
                base_delay=settings.retry_base_delay,
                max_delay=settings.retry_max_delay,
                jitter=settings.retry_jitter,
            ),
        )
        ctx = PipelineContext(
            llm=llm,
            embedder=embedder,
            indexes=_build_indexes(settings, engine),
            message_store=store,
            profile_store=store,
            metadata_content_max_chars=settings.metadata_content_max_chars,
            default_query_limit=settings.default_query_limit,
            agent_context_limit=settings.agent_context_limit,
            agent_index_live_sync=settings.agent_index_live_sync,
            migration_concurrency=settings.migration_concurrency,
            chat_model=settings.openai_chat_model,
            assistant_chat_model=settings.assistant_chat_model,
        )
        yield ctx
    finally:
        await llm.close()
        if engine is not None:
            await engine.dispose()
