"""
CLI to rank the chunks of a PDF against a text query.

Example:
    python -m scripts.search_query --pdf paper.pdf --query "training data" --top-k 5
"""

from __future__ import annotations

import argparse
import uuid

from app.embeddings.client import EmbeddingsClient
from app.indexing.parser import extract_pages
from app.indexing.pipeline import IndexingService
from app.rag.ranker import rank
from app.vector_store import create_vector_store


def main() -> None:
    parser = argparse.ArgumentParser(description="Search the chunks of a PDF by text query.")
    parser.add_argument("--pdf", required=True, help="Path to the PDF file")
    parser.add_argument("--query", "-q", required=True, help="Query text")
    parser.add_argument("--top-k", type=int, default=5, help="How many results to show")
    parser.add_argument("--snippet", type=int, default=300, help="Snippet length")
    args = parser.parse_args()

    vs = create_vector_store()
    emb = EmbeddingsClient()
    document_id = str(uuid.uuid4())

    IndexingService(vs, emb, show_progress=True).index_document(document_id, extract_pages(args.pdf))
    results = rank(vs.get(document_id), emb.embed_text(args.query), k=args.top_k)

    if not results:
        print("No results")
        return

    for idx, item in enumerate(results, start=1):
        snippet = item.text[: args.snippet]
        print(f"\n#{idx} score={item.score:.4f} page={item.page_number}")
        print("text:", snippet + ("..." if len(item.text) > args.snippet else ""))


if __name__ == "__main__":
    main()
