"""
PostgreSQL + pgvector index backend.
Provides keyed upserts and filtered cosine-similarity queries on vector_records.
"""
import json
import logging
from datetime import datetime
from typing import Any, List, Mapping, Sequence

from sqlalchemy import delete, text
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import async_sessionmaker

from chatgenius.models.vector_record import VectorRecord
from chatgenius.vector_store.base import VectorIndex, VectorMatch

logger = logging.getLogger(__name__)


class PgVectorIndex(VectorIndex):
    """One logical index stored as a partition of the vector_records table."""

    def __init__(self, session_factory: async_sessionmaker, name: str):
        super().__init__(name)
        self._session_factory = session_factory

    async def upsert(self, record_id: str, vector: Sequence[float], metadata: Mapping[str, Any]) -> None:
        """
        Insert or replace a record.

        Uses INSERT ... ON CONFLICT DO UPDATE on (index_name, record_id),
        so repeated writes of the same id are last-write-wins.
        """
        now = datetime.utcnow()
        stmt = insert(VectorRecord).values(
            index_name=self.name,
            record_id=record_id,
            embedding=list(vector),
            record_metadata=dict(metadata),
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[VectorRecord.index_name, VectorRecord.record_id],
            set_={
                "embedding": stmt.excluded.embedding,
                "record_metadata": stmt.excluded.record_metadata,
                "updated_at": now,
            }
        )
        async with self._session_factory() as db:
            await db.execute(stmt)
            await db.commit()

    async def query(
        self,
        vector: Sequence[float],
        filter: Mapping[str, Any],
        top_k: int
    ) -> List[VectorMatch]:
        """
        Find similar records using cosine similarity.

        pgvector operators:
          <-> : L2 (Euclidean) distance
          <=> : Cosine distance (1 - cosine_similarity), range [0, 2]
          <#> : Negative inner product
        Scores are returned as cosine similarity (1 - distance).
        """
        # pgvector expects format: '[0.1,0.2,...]'
        embedding_str = '[' + ','.join(str(x) for x in vector) + ']'

        sql = text("""
            SELECT record_id, record_metadata, (embedding <=> CAST(:query_vec AS vector)) AS distance
            FROM vector_records
            WHERE index_name = :index_name
            AND record_metadata @> CAST(:filter AS jsonb)
            ORDER BY embedding <=> CAST(:query_vec AS vector)
            LIMIT :limit
        """)
        params = {
            "query_vec": embedding_str,
            "index_name": self.name,
            "filter": json.dumps(dict(filter)),
            "limit": top_k,
        }

        async with self._session_factory() as db:
            result = await db.execute(sql, params)
            rows = result.fetchall()

        return [
            VectorMatch(
                id=str(row[0]),
                score=1.0 - float(row[2]),
                metadata=dict(row[1] or {})
            )
            for row in rows
        ]

    async def delete_all(self) -> None:
        async with self._session_factory() as db:
            await db.execute(
                delete(VectorRecord).where(VectorRecord.index_name == self.name)
            )
            await db.commit()

    async def delete_many(self, filter: Mapping[str, Any]) -> None:
        async with self._session_factory() as db:
            await db.execute(
                delete(VectorRecord).where(
                    VectorRecord.index_name == self.name,
                    VectorRecord.record_metadata.contains(dict(filter))
                )
            )
            await db.commit()

    async def ping(self) -> bool:
        try:
            async with self._session_factory() as db:
                await db.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"pgvector index {self.name} unreachable: {e}")
            return False
