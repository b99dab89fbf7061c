"""
Grounded prompt construction and the streamed answer with citation scanning.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterator, List, Sequence

from app.config import settings
from app.errors import QueryFailedError, ServiceError
from app.llm.client import TextGenerator
from app.models.schemas import StreamEvent
from app.rag.citations import CitationScanner
from app.rag.ranker import RankedChunk, cited_pages

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are an assistant answering questions about an uploaded PDF document. "
    "Answer only from the context below. "
    "If the context does not contain the answer, say that the document does not cover it."
)
CITATION_INSTRUCTION = (
    "End your answer with a final line of the exact form\n"
    "Citations: [n, n, ...]\n"
    "listing the page numbers you used."
)


class StreamState(str, Enum):
    PROMPTING = "prompting"
    STREAMING = "streaming"
    CITATION_SCAN = "citation_scan"
    DONE = "done"


def build_prompt(question: str, context: Sequence[RankedChunk]) -> str:
    fragments = [f"[Page {item.page_number}]\n{item.text}" for item in context]
    return "\n\n".join(
        [
            SYSTEM_INSTRUCTION,
            "Context:\n" + "\n\n".join(fragments),
            f"Question: {question}",
            CITATION_INSTRUCTION,
        ]
    )


class AnswerStream:
    """
    Iterable of ``StreamEvent`` for one question.

    Yields ``delta`` events while the model streams, then a single ``done``
    event, or an ``error`` event if the provider fails mid-stream. Closing
    the iterator early closes the upstream request.
    """

    def __init__(
        self,
        first_fragment: str | None,
        fragments: Iterator[str],
        context_pages: List[int],
        scanner: CitationScanner,
        logger_: logging.Logger | None = None,
    ) -> None:
        self._first_fragment = first_fragment
        self._fragments = fragments
        self.context_pages = context_pages
        self.scanner = scanner
        self.state = StreamState.STREAMING
        self.logger = logger_ or logger
        self._emitted_citations: List[int] = []

    @property
    def citations(self) -> List[int]:
        return list(self.scanner.citations)

    def __iter__(self) -> Iterator[StreamEvent]:
        if self.state is StreamState.DONE:
            return
        fragment_count = 0
        try:
            fragment = self._first_fragment
            while fragment is not None:
                fragment_count += 1
                self.state = StreamState.CITATION_SCAN
                event = self._delta(self.scanner.feed(fragment))
                self.state = StreamState.STREAMING
                if event:
                    yield event
                fragment = next(self._fragments, None)
        except ServiceError as exc:
            self.logger.warning(
                "Answer stream interrupted",
                extra={"fragments": fragment_count, "error": exc.message},
            )
            event = self._delta(self.scanner.finish())
            if event:
                yield event
            yield StreamEvent.failed(exc.message, self.citations)
            return
        finally:
            close = getattr(self._fragments, "close", None)
            if close is not None:
                close()
            self.state = StreamState.DONE

        event = self._delta(self.scanner.finish())
        if event:
            yield event
        self.logger.info(
            "Answer stream completed",
            extra={"fragments": fragment_count, "citations": self.citations},
        )
        yield StreamEvent.done(self.citations, self.context_pages)

    def _delta(self, text: str) -> StreamEvent | None:
        citations = self.citations
        if not text and citations == self._emitted_citations:
            return None
        self._emitted_citations = citations
        return StreamEvent.delta(text, citations)


class AnswerStreamer:
    def __init__(
        self,
        llm_client: TextGenerator,
        max_pending_chars: int = settings.citation_max_pending_chars,
        logger_: logging.Logger | None = None,
    ) -> None:
        self.llm_client = llm_client
        self.max_pending_chars = max_pending_chars
        self.logger = logger_ or logging.getLogger(__name__)

    def open(self, question: str, context: Sequence[RankedChunk]) -> AnswerStream:
        """
        Send the grounded prompt and wait for the first fragment.

        Raises ``QueryFailedError`` if the provider fails before producing
        anything, so the caller can answer with a plain error instead of an
        empty stream.
        """
        prompt = build_prompt(question, context)
        self.logger.info(
            "Prompt built",
            extra={"chunks": len(context), "prompt_chars": len(prompt)},
        )

        try:
            fragments = iter(self.llm_client.generate_stream(prompt))
            first_fragment = next(fragments, None)
        except ServiceError as exc:
            self.logger.warning("Generation failed before streaming", extra={"error": exc.message})
            raise QueryFailedError("Query failed", exc.details) from exc

        return AnswerStream(
            first_fragment=first_fragment,
            fragments=fragments,
            context_pages=cited_pages(context),
            scanner=CitationScanner(max_pending_chars=self.max_pending_chars),
            logger_=self.logger,
        )


__all__ = ["AnswerStream", "AnswerStreamer", "StreamState", "build_prompt"]
