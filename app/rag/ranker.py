"""
Cosine-similarity ranking of a document's chunks against a query vector.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence

import numpy as np

from app.config import settings
from app.vector_store.base import ChunkRecord, DocumentIndex

DEFAULT_TOP_K = settings.top_k


@dataclass(frozen=True)
class RankedChunk:
    record: ChunkRecord
    score: float

    @property
    def text(self) -> str:
        return self.record.text

    @property
    def page_number(self) -> int:
        return self.record.page_number


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    ``dot(a, b) / (|a| * |b|)``; a zero-magnitude vector scores 0.0.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Vector length mismatch: {va.shape[0]} != {vb.shape[0]}")

    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denom)


def rank(index: DocumentIndex, query_vector: Sequence[float], k: int = DEFAULT_TOP_K) -> List[RankedChunk]:
    """
    Top-``k`` chunks by descending score.

    Equal scores keep insertion order. ``k`` is clamped to ``[1, len(index)]``.
    """
    if not index.records:
        return []

    k = min(max(k, 1), len(index))
    scored = [RankedChunk(record=record, score=cosine_similarity(query_vector, record.embedding)) for record in index]
    # sorted() is stable, so ties stay in insertion order.
    scored = sorted(scored, key=lambda item: item.score, reverse=True)
    return scored[:k]


def cited_pages(ranked: Iterable[RankedChunk]) -> List[int]:
    """Distinct page numbers of ``ranked`` in first-appearance order."""
    pages: List[int] = []
    for item in ranked:
        if item.page_number not in pages:
            pages.append(item.page_number)
    return pages


__all__ = ["RankedChunk", "cosine_similarity", "rank", "cited_pages", "DEFAULT_TOP_K"]
