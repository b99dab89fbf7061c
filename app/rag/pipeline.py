"""
RAG pipeline: normalize question, retrieve context, stream a grounded answer.
"""

from __future__ import annotations

import logging
from typing import List

from app.config import settings
from app.embeddings.client import Embedder
from app.errors import InvalidRequestError, ServiceError
from app.rag.ranker import RankedChunk, rank
from app.rag.streamer import AnswerStream, AnswerStreamer
from app.vector_store.base import VectorStore

logger = logging.getLogger(__name__)


class RAGService:
    """Answers questions about one stored document."""

    def __init__(
        self,
        vector_store: VectorStore,
        embeddings_client: Embedder,
        streamer: AnswerStreamer,
        top_k: int = settings.top_k,
        logger_: logging.Logger | None = None,
    ) -> None:
        self.vector_store = vector_store
        self.embeddings_client = embeddings_client
        self.streamer = streamer
        self.top_k = top_k
        self.logger = logger_ or logging.getLogger(__name__)

    # --- Public API ---
    def ask(self, document_id: str, question: str) -> AnswerStream:
        """Main entry point: returns the opened answer stream."""
        if not (document_id or "").strip():
            raise InvalidRequestError("Document id must not be empty", {"field": "pdfId"})
        normalized_question = self.normalize_question(question or "")
        if not normalized_question:
            raise InvalidRequestError("Question must not be empty", {"field": "question"})

        context = self.retrieve_relevant_chunks(document_id, normalized_question)
        return self.streamer.open(normalized_question, context)

    # --- Steps ---
    @staticmethod
    def normalize_question(text: str) -> str:
        return " ".join(text.strip().split())

    def retrieve_relevant_chunks(self, document_id: str, question: str) -> List[RankedChunk]:
        # Unknown documents fail here, before any provider call.
        index = self.vector_store.get(document_id)

        embedding = self.embeddings_client.embed_text(question)
        if index.dimension is not None and len(embedding) != index.dimension:
            raise ServiceError(
                "Query embedding dimension mismatch",
                {"document_id": document_id, "expected": index.dimension, "received": len(embedding)},
            )

        ranked = rank(index, embedding, k=self.top_k)
        self.logger.info(
            "Retrieved chunks",
            extra={
                "document_id": document_id,
                "indexed": len(index),
                "returned": len(ranked),
                "top_score": round(ranked[0].score, 3) if ranked else None,
                "results": [{"page": r.page_number, "score": round(r.score, 3)} for r in ranked],
            },
        )
        return ranked


__all__ = ["RAGService"]
