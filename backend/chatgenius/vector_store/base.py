"""
Base class for vector index backends.
Every backend stores (id, vector, flat metadata) records and supports
filtered nearest-neighbour queries plus scoped deletes.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Sequence

from pydantic import BaseModel, Field


class VectorMatch(BaseModel):
    """A single nearest-neighbour match."""
    id: str
    score: float
    metadata: Dict[str, Any] = Field(default_factory=dict)


class VectorIndex(ABC):
    """
    Abstract vector index.

    Mutations are keyed upserts or scoped deletes only, so callers never
    need client-side locking.
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def upsert(self, record_id: str, vector: Sequence[float], metadata: Mapping[str, Any]) -> None:
        """Insert or replace the record with this id."""
        pass

    @abstractmethod
    async def query(
        self,
        vector: Sequence[float],
        filter: Mapping[str, Any],
        top_k: int
    ) -> List[VectorMatch]:
        """
        Nearest neighbours of ``vector`` among records whose metadata equals
        every key/value in ``filter``, best match first.
        """
        pass

    @abstractmethod
    async def delete_all(self) -> None:
        """Delete every record in this index. Irreversible."""
        pass

    @abstractmethod
    async def delete_many(self, filter: Mapping[str, Any]) -> None:
        """Delete every record whose metadata matches ``filter``."""
        pass

    async def ping(self) -> bool:
        """Check connectivity. Backends override when they can do better."""
        return True

    async def close(self) -> None:
        return None
