"""
Vector store abstractions and factories.
"""

from functools import lru_cache

from app.config import settings
from app.vector_store.base import ChunkRecord, DocumentIndex, VectorStore
from app.vector_store.chroma_store import ChromaVectorStore
from app.vector_store.memory_store import InMemoryVectorStore

DEFAULT_VECTOR_STORE_BACKEND = settings.vector_store_backend


def create_vector_store(backend: str = DEFAULT_VECTOR_STORE_BACKEND) -> VectorStore:
    backend = backend.lower()
    if backend == "memory":
        return InMemoryVectorStore()
    if backend == "chroma":
        return ChromaVectorStore()
    raise ValueError(f"Unsupported vector store backend: {backend}")


@lru_cache(maxsize=None)
def get_vector_store() -> VectorStore:
    """
    Process-wide VectorStore shared by the upload and ask handlers.
    """
    return create_vector_store()


__all__ = [
    "DEFAULT_VECTOR_STORE_BACKEND",
    "create_vector_store",
    "get_vector_store",
    "ChunkRecord",
    "DocumentIndex",
    "VectorStore",
    "ChromaVectorStore",
    "InMemoryVectorStore",
]
