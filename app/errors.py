"""
Exception hierarchy shared by indexing, retrieval and the HTTP layer.
"""

from __future__ import annotations

from typing import Any, Dict


class AppError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str, details: Dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InvalidRequestError(AppError):
    """Missing or malformed caller input (document id, question, file)."""


class InvalidDocumentError(InvalidRequestError):
    """Uploaded file could not be read as a PDF."""


class DocumentNotFoundError(AppError):
    def __init__(self, document_id: str) -> None:
        super().__init__("Document not found", {"document_id": document_id})
        self.document_id = document_id


class EmptyDocumentError(AppError):
    """Every page of the document was empty after normalization."""


class ServiceError(AppError):
    """Embedding or generation provider failure."""


class QueryFailedError(ServiceError):
    """Generation failed before the first fragment; the stream was never opened."""


__all__ = [
    "AppError",
    "InvalidRequestError",
    "InvalidDocumentError",
    "DocumentNotFoundError",
    "EmptyDocumentError",
    "ServiceError",
    "QueryFailedError",
]
