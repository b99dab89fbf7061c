"""
Chroma-based VectorStore implementation.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Sequence

import chromadb

from app.errors import DocumentNotFoundError
from app.vector_store.base import ChunkRecord, DocumentIndex, VectorStore

CHROMA_COLLECTION = "document_chunks"

logger = logging.getLogger(__name__)


class ChromaVectorStore(VectorStore):
    """
    Keeps every document in one in-process chroma collection.

    Rows are tagged with ``document_id``, a per-document ``generation`` and
    their insertion ``position`` so ``get`` can rebuild the current index in
    its original order. Ranking is done by the caller, chroma is only used as
    storage.
    """

    def __init__(self, client: Any | None = None, collection_name: str = CHROMA_COLLECTION) -> None:
        self.collection_name = collection_name
        self.client = client or chromadb.EphemeralClient()
        self.collection = self.client.get_or_create_collection(self.collection_name)
        # put/get run under one lock so a reader never sees a half-replaced document.
        self._lock = threading.Lock()
        self._generations: Dict[str, int] = {}
        logger.info("ChromaVectorStore initialised", extra={"collection": self.collection_name})

    def put(self, document_id: str, records: Sequence[ChunkRecord]) -> DocumentIndex:
        index = DocumentIndex.build(document_id, records)
        with self._lock:
            # New rows land under a fresh generation; the previous one stays readable until they are in.
            generation = self._generations.get(document_id, 0) + 1
            if index.records:
                self.collection.add(
                    ids=[f"{document_id}:{generation}:{position}" for position in range(len(index))],
                    embeddings=[list(record.embedding) for record in index],
                    metadatas=[
                        {
                            "document_id": document_id,
                            "generation": generation,
                            "page_number": record.page_number,
                            "position": position,
                        }
                        for position, record in enumerate(index)
                    ],
                    documents=[record.text for record in index],
                )
            previous = self._generations.get(document_id)
            self._generations[document_id] = generation
            if previous is not None:
                self.collection.delete(where=_rows_of(document_id, previous))
        logger.info(
            "Upserted documents into Chroma",
            extra={"document_id": document_id, "count": len(index), "collection": self.collection_name},
        )
        return index

    def get(self, document_id: str) -> DocumentIndex:
        with self._lock:
            if document_id not in self._generations:
                raise DocumentNotFoundError(document_id)
            result = self.collection.get(
                where=_rows_of(document_id, self._generations[document_id]),
                include=["documents", "metadatas", "embeddings"],
            )

        texts = result.get("documents") or []
        metadatas = result.get("metadatas") or []
        embeddings = result.get("embeddings")
        if embeddings is None:
            embeddings = []

        rows: List[tuple] = []
        for text, metadata, embedding in zip(texts, metadatas, embeddings):
            record = ChunkRecord(
                text=text,
                page_number=int(metadata["page_number"]),
                embedding=tuple(float(x) for x in embedding),
            )
            rows.append((int(metadata["position"]), record))
        rows.sort(key=lambda row: row[0])
        return DocumentIndex.build(document_id, (record for _, record in rows))


def _rows_of(document_id: str, generation: int) -> dict:
    return {"$and": [{"document_id": document_id}, {"generation": generation}]}


__all__ = ["ChromaVectorStore", "CHROMA_COLLECTION"]
