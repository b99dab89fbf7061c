"""
Indexing pipeline: segment a document, embed its chunks, store the index.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import List, Sequence

from tqdm import tqdm

from app.config import settings
from app.embeddings.client import Embedder
from app.errors import EmptyDocumentError, ServiceError
from app.indexing.chunker import segment
from app.vector_store.base import ChunkRecord, VectorStore

logger = logging.getLogger(__name__)


@dataclass
class IndexSummary:
    document_id: str
    pages: int
    chunks: int
    elapsed_sec: float


class IndexingService:
    """Builds the index of one uploaded document."""

    def __init__(
        self,
        vector_store: VectorStore,
        embeddings_client: Embedder,
        chunk_size: int = settings.chunk_size_chars,
        chunk_overlap: int = settings.chunk_overlap_chars,
        embed_batch: int = settings.embed_batch_size,
        show_progress: bool = False,
        logger_: logging.Logger | None = None,
    ) -> None:
        self.vector_store = vector_store
        self.embeddings_client = embeddings_client
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.embed_batch = embed_batch
        self.show_progress = show_progress
        self.logger = logger_ or logging.getLogger(__name__)

    def index_document(self, document_id: str, source: str | Sequence[str]) -> IndexSummary:
        """
        Segment, embed and store ``source`` under ``document_id``.

        The index is written with a single ``put`` after every chunk has been
        embedded; any provider failure leaves the store untouched.
        """
        started = time.time()
        chunks = segment(source, chunk_size=self.chunk_size, overlap=self.chunk_overlap)
        if not chunks:
            raise EmptyDocumentError("Document has no extractable text", {"document_id": document_id})

        pages = len({chunk.page_number for chunk in chunks})
        self.logger.info(
            "Segmented document",
            extra={"document_id": document_id, "pages": pages, "chunks": len(chunks)},
        )

        embeddings: List[List[float]] = []
        for i in tqdm(
            range(0, len(chunks), self.embed_batch),
            desc="Embedding",
            unit="batch",
            disable=not self.show_progress,
        ):
            batch = chunks[i : i + self.embed_batch]
            vectors = self.embeddings_client.embed_texts([c.text for c in batch])
            if len(vectors) != len(batch):
                raise ServiceError(
                    "Embedding count mismatch",
                    {"document_id": document_id, "expected": len(batch), "received": len(vectors)},
                )
            embeddings.extend(vectors)

        records = [
            ChunkRecord(text=chunk.text, page_number=chunk.page_number, embedding=tuple(vector))
            for chunk, vector in zip(chunks, embeddings)
        ]
        try:
            self.vector_store.put(document_id, records)
        except ValueError as exc:
            raise ServiceError("Inconsistent embedding dimensions", {"document_id": document_id}) from exc

        elapsed = time.time() - started
        self.logger.info(
            "Document indexed",
            extra={"document_id": document_id, "chunks": len(records), "elapsed_sec": round(elapsed, 2)},
        )
        return IndexSummary(document_id=document_id, pages=pages, chunks=len(records), elapsed_sec=elapsed)


__all__ = ["IndexingService", "IndexSummary"]
