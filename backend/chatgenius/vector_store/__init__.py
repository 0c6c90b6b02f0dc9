"""
Vector index backends.
"""
from chatgenius.vector_store.base import VectorIndex, VectorMatch

__all__ = ["VectorIndex", "VectorMatch"]
