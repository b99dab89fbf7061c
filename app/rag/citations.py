"""
Incremental extraction of the trailing ``Citations: [n, ...]`` marker.

The model is asked to end its answer with a citation line, but streamed
fragments are cut arbitrarily, so the marker can arrive split over several
fragments. ``CitationScanner`` keeps back the shortest tail of the received
text that could still turn into a marker and releases everything before it.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import List

from app.config import settings

CITATION_MARKER = "Citations:"
CITATION_PATTERN = re.compile(r"\s*Citations:\s*\[([^\[\]]*)\]")
# Marker left open when the stream ends, e.g. "Citations: [1, 2" or "Citations: 1, 2".
DANGLING_CITATION_PATTERN = re.compile(r"\s*Citations:\s*\[?([\d,\s]*)\]?\s*$")

DEFAULT_MAX_PENDING_CHARS = settings.citation_max_pending_chars


class ScanState(str, Enum):
    SCANNING = "scanning"
    MATCHED = "matched"
    DONE = "done"


def parse_citation_list(raw: str) -> List[int]:
    """Comma-separated page numbers; junk and non-positive tokens are skipped."""
    pages: List[int] = []
    for token in raw.split(","):
        try:
            page = int(token.strip())
        except ValueError:
            continue
        if page > 0 and page not in pages:
            pages.append(page)
    return pages


def _whitespace_start(text: str, index: int) -> int:
    while index > 0 and text[index - 1].isspace():
        index -= 1
    return index


class CitationScanner:
    def __init__(self, max_pending_chars: int = DEFAULT_MAX_PENDING_CHARS) -> None:
        self.max_pending_chars = max_pending_chars
        self.state = ScanState.SCANNING
        self.citations: List[int] = []
        self._buffer = ""

    @property
    def pending(self) -> str:
        return self._buffer

    def feed(self, fragment: str) -> str:
        """Add a fragment and return the text that is safe to show."""
        if self.state is ScanState.DONE:
            raise RuntimeError("CitationScanner.feed() called after finish()")

        self._buffer += fragment
        self._consume_markers()
        hold = self._hold_index()
        ready, self._buffer = self._buffer[:hold], self._buffer[hold:]
        return ready

    def finish(self) -> str:
        """Flush the held tail at end of stream."""
        if self.state is ScanState.DONE:
            return ""

        self._consume_markers()
        match = DANGLING_CITATION_PATTERN.search(self._buffer)
        if match:
            self._apply(match.group(1))
            self._buffer = self._buffer[: match.start()]

        rest, self._buffer = self._buffer, ""
        self.state = ScanState.DONE
        return rest

    def _apply(self, raw: str) -> None:
        self.citations = parse_citation_list(raw)
        self.state = ScanState.MATCHED

    def _consume_markers(self) -> None:
        match = CITATION_PATTERN.search(self._buffer)
        while match:
            self._apply(match.group(1))
            self._buffer = self._buffer[: match.start()] + self._buffer[match.end() :]
            match = CITATION_PATTERN.search(self._buffer)

    def _hold_index(self) -> int:
        buf = self._buffer

        # An opened but not yet closed marker.
        start = buf.rfind(CITATION_MARKER)
        if start != -1 and len(buf) - start <= self.max_pending_chars:
            return _whitespace_start(buf, start)

        # A tail that is a proper prefix of the marker, e.g. "Citat".
        for start in range(max(0, len(buf) - len(CITATION_MARKER) + 1), len(buf)):
            if CITATION_MARKER.startswith(buf[start:]):
                return _whitespace_start(buf, start)

        # Trailing whitespace may still turn out to precede a marker.
        return _whitespace_start(buf, len(buf))


__all__ = [
    "CITATION_MARKER",
    "CitationScanner",
    "ScanState",
    "parse_citation_list",
]
