"""
Database configuration for the pgvector index backend.
Uses SQLAlchemy async engine for PostgreSQL with pgvector support.
"""
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker

from chatgenius.models.base import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> AsyncEngine:
    """Create an async engine. Engines are bound to the running event loop."""
    return create_async_engine(
        database_url,
        echo=False,
        future=True,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine):
    """
    Initialize database: enable pgvector and create tables.
    Called on application startup when the pgvector backend is selected.
    """
    from chatgenius.models.vector_record import VectorRecord  # noqa: F401

    # Extension creation needs its own connection to avoid transaction issues
    try:
        async with engine.connect() as ext_conn:
            result = await ext_conn.execute(text("""
                SELECT EXISTS(
                    SELECT 1 FROM pg_extension WHERE extname = 'vector'
                )
            """))
            extension_exists = result.scalar()

            if not extension_exists:
                try:
                    await ext_conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
                    await ext_conn.commit()
                except Exception as e:
                    # Another connection may have created it concurrently
                    await ext_conn.rollback()
                    logger.warning(f"Could not create vector extension (may already exist): {e}")
    except Exception as e:
        logger.warning(f"Error checking/creating vector extension: {e}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
