"""
Vector record model using pgvector.
Backs the pgvector index backend: one row per (index, record id).
"""
from sqlalchemy import Column, String, DateTime, Index
from sqlalchemy.dialects.postgresql import JSONB
from pgvector.sqlalchemy import Vector
from datetime import datetime

from chatgenius.models.base import Base

EMBEDDING_DIMENSION = 1536


class VectorRecord(Base):
    """
    Embedding record stored in PostgreSQL.

    ``index_name`` partitions the table into the logical indexes
    (workspace search, AI agent). The composite primary key makes
    writes insert-or-replace by record id.
    """

    __tablename__ = "vector_records"

    index_name = Column(String(64), primary_key=True)
    record_id = Column(String(255), primary_key=True)

    # text-embedding-ada-002 dimension
    embedding = Column(Vector(EMBEDDING_DIMENSION), nullable=False)

    # Flat metadata, filtered with JSONB containment (@>)
    record_metadata = Column(JSONB, nullable=False, default=dict)

    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_vector_records_metadata", "record_metadata", postgresql_using="gin"),
    )

    def __repr__(self):
        return f"<VectorRecord(index={self.index_name}, id={self.record_id})>"
