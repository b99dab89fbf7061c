"""
Shared fixtures: fake providers and a fresh in-memory store per test.
"""

import os
import tempfile
from typing import Iterator, List, Sequence

# Must be set before app.config is imported anywhere.
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="pdfqa-uploads-"))
os.environ.setdefault("OPENAI_API_KEY", "test-key")

import pytest

from app.errors import ServiceError
from app.vector_store.memory_store import InMemoryVectorStore

VOCABULARY = ["revenue", "risk", "growth", "team", "product", "market"]


class FakeEmbedder:
    """Bag-of-words vectors over a tiny vocabulary; unknown text embeds to zeros."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[str] = []

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        if self.fail:
            raise ServiceError("Embedding request failed")
        self.calls.extend(texts)
        return [self._vector(text) for text in texts]

    def embed_text(self, text: str) -> List[float]:
        return self.embed_texts([text])[0]

    @staticmethod
    def _vector(text: str) -> List[float]:
        words = text.lower().replace(".", " ").replace("?", " ").split()
        return [float(words.count(term)) for term in VOCABULARY]


class FakeGenerator:
    """
    Streams preset fragments. ``fail_at`` raises ServiceError instead of the
    fragment at that position (0 means before anything is produced).
    """

    def __init__(self, fragments: Sequence[str], fail_at: int | None = None) -> None:
        self.fragments = list(fragments)
        self.fail_at = fail_at
        self.prompts: List[str] = []
        self.closed = False
        self.produced = 0

    def generate_stream(self, prompt: str) -> Iterator[str]:
        self.prompts.append(prompt)
        try:
            for position, fragment in enumerate(self.fragments):
                if position == self.fail_at:
                    raise ServiceError("Generation stream interrupted")
                self.produced += 1
                yield fragment
            if self.fail_at is not None and self.fail_at >= len(self.fragments):
                raise ServiceError("Generation stream interrupted")
        finally:
            self.closed = True


@pytest.fixture
def store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def embedder() -> FakeEmbedder:
    return FakeEmbedder()
