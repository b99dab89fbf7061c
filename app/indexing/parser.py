"""
PDF parser utilities: extract per-page text and split page-delimited text.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, List

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from app.errors import InvalidDocumentError

PAGE_BREAK = "\f"


def extract_pages(source: str | Path | BinaryIO) -> List[str]:
    """Return the raw text of every page, in document order (empty pages included)."""
    try:
        reader = PdfReader(source)
        return [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, ValueError) as exc:
        raise InvalidDocumentError("Could not read PDF", {"error": str(exc)}) from exc


def extract_text(source: str | Path | BinaryIO) -> str:
    """Whole-document text with pages joined by ``PAGE_BREAK``."""
    return PAGE_BREAK.join(extract_pages(source))


def split_pages(text: str) -> List[str]:
    return text.split(PAGE_BREAK)


__all__ = ["PAGE_BREAK", "extract_pages", "extract_text", "split_pages"]
