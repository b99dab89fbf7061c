"""
In-process VectorStore: one immutable DocumentIndex per document id.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Sequence

from app.errors import DocumentNotFoundError
from app.vector_store.base import ChunkRecord, DocumentIndex, VectorStore

logger = logging.getLogger(__name__)


class InMemoryVectorStore(VectorStore):
    """
    Documents live for the lifetime of the process; there is no eviction.

    ``put`` swaps in a new mapping instead of mutating the current one, so a
    concurrent ``get`` sees either no index or the complete one.
    """

    def __init__(self) -> None:
        self._indexes: Dict[str, DocumentIndex] = {}
        self._write_lock = threading.Lock()

    def put(self, document_id: str, records: Sequence[ChunkRecord]) -> DocumentIndex:
        index = DocumentIndex.build(document_id, records)
        with self._write_lock:
            indexes = dict(self._indexes)
            indexes[document_id] = index
            self._indexes = indexes
        logger.info("Stored document index", extra={"document_id": document_id, "count": len(index)})
        return index

    def get(self, document_id: str) -> DocumentIndex:
        index = self._indexes.get(document_id)
        if index is None:
            raise DocumentNotFoundError(document_id)
        return index

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._indexes

    def __len__(self) -> int:
        return len(self._indexes)


__all__ = ["InMemoryVectorStore"]
