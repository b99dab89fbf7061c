"""
Index a PDF and stream an answer to a question in the terminal.

Example:
    python -m scripts.ask_document --pdf paper.pdf --question "What is the main result?"
"""

from __future__ import annotations

import argparse
import logging
import sys
import uuid

from app.config import setup_logging
from app.embeddings.client import EmbeddingsClient
from app.errors import AppError
from app.indexing.parser import extract_pages
from app.indexing.pipeline import IndexingService
from app.llm.client import LLMClient
from app.models.schemas import StreamEventType
from app.rag.pipeline import RAGService
from app.rag.streamer import AnswerStreamer
from app.vector_store import create_vector_store


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ask a question about a PDF.")
    parser.add_argument("--pdf", required=True, help="Path to the PDF file")
    parser.add_argument("--question", "-q", required=True, help="Question about the document")
    parser.add_argument("--top-k", type=int, default=None, help="Override number of context chunks")
    return parser.parse_args()


def main() -> None:
    setup_logging()
    logger = logging.getLogger(__name__)
    args = parse_args()

    store = create_vector_store()
    embeddings_client = EmbeddingsClient()
    document_id = str(uuid.uuid4())

    rag_kwargs = {"top_k": args.top_k} if args.top_k is not None else {}
    service = RAGService(
        vector_store=store,
        embeddings_client=embeddings_client,
        streamer=AnswerStreamer(LLMClient()),
        logger_=logger,
        **rag_kwargs,
    )

    try:
        IndexingService(store, embeddings_client, show_progress=True, logger_=logger).index_document(
            document_id, extract_pages(args.pdf)
        )
        stream = service.ask(document_id, args.question)
    except AppError:
        logger.exception("Ask failed")
        sys.exit(1)

    print("\n=== Answer ===")
    for event in stream:
        if event.event is StreamEventType.DELTA:
            print(event.text_delta, end="", flush=True)
        elif event.event is StreamEventType.ERROR:
            print(f"\n[stream failed: {event.error}]")
            sys.exit(1)
        else:
            print(f"\n\nCitations: {event.citations}")
            print(f"Context pages: {event.context_pages}")


if __name__ == "__main__":
    main()
