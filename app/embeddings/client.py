"""
OpenAI embeddings client.
"""

from __future__ import annotations

import logging
from typing import List, Protocol, Sequence

from openai import OpenAI, OpenAIError

from app.config import settings
from app.errors import ServiceError

DEFAULT_EMBEDDING_MODEL = settings.embedding_model_name
DEFAULT_EMBED_BATCH_SIZE = settings.embed_batch_size

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        ...

    def embed_text(self, text: str) -> List[float]:
        ...


class EmbeddingsClient:
    def __init__(
        self,
        model: str = DEFAULT_EMBEDDING_MODEL,
        batch_size: int = DEFAULT_EMBED_BATCH_SIZE,
        client: OpenAI | None = None,
    ) -> None:
        self.model = model
        self.batch_size = batch_size
        api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
        self.client = client or OpenAI(api_key=api_key)

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []

        embeddings: List[List[float]] = []
        for i in range(0, len(texts), self.batch_size):
            batch = list(texts[i : i + self.batch_size])
            try:
                response = self.client.embeddings.create(model=self.model, input=batch)
            except OpenAIError as exc:
                logger.warning("Embedding request failed", extra={"model": self.model, "batch": len(batch)})
                raise ServiceError("Embedding request failed", {"model": self.model}) from exc

            vectors = [list(item.embedding or []) for item in response.data]
            if len(vectors) != len(batch) or any(not vector for vector in vectors):
                raise ServiceError(
                    "Malformed embedding response",
                    {"model": self.model, "expected": len(batch), "received": len(vectors)},
                )
            embeddings.extend(vectors)
        return embeddings

    def embed_text(self, text: str) -> List[float]:
        return self.embed_texts([text])[0]


__all__ = ["Embedder", "EmbeddingsClient", "DEFAULT_EMBEDDING_MODEL"]
