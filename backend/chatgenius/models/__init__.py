"""
Database models package.
"""
from chatgenius.models.base import Base
from chatgenius.models.vector_record import VectorRecord

__all__ = [
    "Base",
    "VectorRecord",
]
