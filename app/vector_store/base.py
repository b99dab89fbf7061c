"""
Vector store interface and shared types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Protocol, Sequence, Tuple


@dataclass(frozen=True)
class ChunkRecord:
    text: str
    page_number: int
    embedding: Tuple[float, ...]

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {self.page_number}")
        # Accept any float sequence but store it immutably.
        object.__setattr__(self, "embedding", tuple(float(x) for x in self.embedding))


@dataclass(frozen=True)
class DocumentIndex:
    """Ordered chunk records of one document; embeddings share one dimension."""

    document_id: str
    records: Tuple[ChunkRecord, ...]

    @classmethod
    def build(cls, document_id: str, records: Iterable[ChunkRecord]) -> "DocumentIndex":
        items = tuple(records)
        dimensions = {len(record.embedding) for record in items}
        if len(dimensions) > 1:
            raise ValueError(f"Mixed embedding dimensions in document {document_id}: {sorted(dimensions)}")
        return cls(document_id=document_id, records=items)

    @property
    def dimension(self) -> int | None:
        return len(self.records[0].embedding) if self.records else None

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[ChunkRecord]:
        return iter(self.records)


class VectorStore(Protocol):
    def put(self, document_id: str, records: Sequence[ChunkRecord]) -> DocumentIndex:
        ...

    def get(self, document_id: str) -> DocumentIndex:
        ...


__all__ = ["ChunkRecord", "DocumentIndex", "VectorStore"]
