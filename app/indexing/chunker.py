"""
Text chunking utilities.

Documents are first split into pages, then pages longer than the character
budget are split on sentence boundaries with a small tail overlap.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Sequence

from app.config import settings
from app.indexing.parser import split_pages

CHUNK_SIZE_CHARS = settings.chunk_size_chars
CHUNK_OVERLAP_CHARS = settings.chunk_overlap_chars

WHITESPACE_PATTERN = re.compile(r"\s+")
SENTENCE_BOUNDARY_PATTERN = re.compile(r"(?<=[.?!])\s+")


@dataclass(frozen=True)
class PageChunk:
    page_number: int
    text: str


def normalize_text(text: str) -> str:
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def split_sentences(text: str) -> List[str]:
    return [s for s in SENTENCE_BOUNDARY_PATTERN.split(text) if s]


def _overlap_tail(text: str, overlap: int) -> str:
    """Last ``overlap`` characters of ``text``, starting at a word boundary."""
    if overlap <= 0 or not text:
        return ""
    if len(text) <= overlap:
        return text
    tail = text[-overlap:]
    if not text[-overlap - 1].isspace():
        # Drop the partial word at the cut.
        space = tail.find(" ")
        tail = tail[space + 1 :] if space != -1 else ""
    return tail.strip()


def chunk_page_text(
    text: str,
    chunk_size: int = CHUNK_SIZE_CHARS,
    overlap: int = CHUNK_OVERLAP_CHARS,
) -> List[str]:
    """
    Split normalized page text into sub-chunks of at most ``chunk_size`` chars.

    A sentence longer than ``chunk_size`` becomes its own oversized chunk;
    sentences are never cut.
    """
    if overlap >= chunk_size:
        raise ValueError("overlap must be less than chunk_size")
    if len(text) <= chunk_size:
        return [text] if text else []

    chunks: List[str] = []
    current = ""
    for sentence in split_sentences(text):
        candidate = f"{current} {sentence}" if current else sentence
        if current and len(candidate) > chunk_size:
            chunks.append(current)
            tail = _overlap_tail(current, overlap)
            if tail and len(tail) + 1 + len(sentence) <= chunk_size:
                current = f"{tail} {sentence}"
            else:
                current = sentence
        else:
            current = candidate

    if current:
        chunks.append(current)
    return chunks


def segment(
    source: str | Sequence[str],
    chunk_size: int = CHUNK_SIZE_CHARS,
    overlap: int = CHUNK_OVERLAP_CHARS,
) -> List[PageChunk]:
    """
    Turn a document into ordered page-scoped chunks.

    ``source`` is either text with pages separated by form feeds or a
    sequence of per-page strings. Pages are numbered from 1; pages that are
    empty after normalization are dropped without renumbering the rest.
    """
    pages = split_pages(source) if isinstance(source, str) else list(source)

    chunks: List[PageChunk] = []
    for page_number, raw_page in enumerate(pages, start=1):
        page_text = normalize_text(raw_page)
        if not page_text:
            continue
        for piece in chunk_page_text(page_text, chunk_size=chunk_size, overlap=overlap):
            chunks.append(PageChunk(page_number=page_number, text=piece))
    return chunks


__all__ = [
    "PageChunk",
    "normalize_text",
    "split_sentences",
    "chunk_page_text",
    "segment",
    "CHUNK_SIZE_CHARS",
    "CHUNK_OVERLAP_CHARS",
]
