"""
Pinecone vector index backend.

The Pinecone SDK is synchronous; calls run in a worker thread so the
pipeline's event loop is never blocked.
"""
import asyncio
import logging
from typing import Any, Dict, List, Mapping, Sequence

from pinecone import Pinecone

from chatgenius.vector_store.base import VectorIndex, VectorMatch

logger = logging.getLogger(__name__)


def _equality_filter(filter: Mapping[str, Any]) -> Dict[str, Any]:
    """Translate a flat equality filter to Pinecone's filter language."""
    return {key: {"$eq": value} for key, value in filter.items()}


class PineconeIndex(VectorIndex):
    """One Pinecone index (e.g. workspace search or AI agent)."""

    def __init__(self, client: Pinecone, name: str):
        super().__init__(name)
        self._index = client.Index(name)

    async def upsert(self, record_id: str, vector: Sequence[float], metadata: Mapping[str, Any]) -> None:
        await asyncio.to_thread(
            self._index.upsert,
            vectors=[{
                "id": record_id,
                "values": list(vector),
                "metadata": dict(metadata),
            }]
        )

    async def query(
        self,
        vector: Sequence[float],
        filter: Mapping[str, Any],
        top_k: int
    ) -> List[VectorMatch]:
        response = await asyncio.to_thread(
            self._index.query,
            vector=list(vector),
            filter=_equality_filter(filter),
            top_k=top_k,
            include_metadata=True
        )
        matches = getattr(response, "matches", None) or []
        return [
            VectorMatch(
                id=match.id,
                score=float(match.score or 0.0),
                metadata=dict(match.metadata or {})
            )
            for match in matches
        ]

    async def delete_all(self) -> None:
        await asyncio.to_thread(self._index.delete, delete_all=True)

    async def delete_many(self, filter: Mapping[str, Any]) -> None:
        await asyncio.to_thread(self._index.delete, filter=_equality_filter(filter))

    async def ping(self) -> bool:
        try:
            await asyncio.to_thread(self._index.describe_index_stats)
            return True
        except Exception as e:
            logger.warning(f"Pinecone index {self.name} unreachable: {e}")
            return False
