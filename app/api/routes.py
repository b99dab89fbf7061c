from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path
from typing import Iterator, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import StreamingResponse

from app.config import settings
from app.embeddings.client import Embedder, EmbeddingsClient
from app.errors import (
    DocumentNotFoundError,
    EmptyDocumentError,
    InvalidRequestError,
    ServiceError,
)
from app.indexing.parser import extract_pages
from app.indexing.pipeline import IndexingService
from app.llm.client import LLMClient
from app.models.schemas import AskRequest, UploadResponse
from app.rag.pipeline import RAGService
from app.rag.streamer import AnswerStream, AnswerStreamer
from app.vector_store import get_vector_store
from app.vector_store.base import VectorStore

router = APIRouter()
logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


# --- Dependencies ---
def get_embeddings_client() -> Embedder:
    return EmbeddingsClient()


def get_answer_streamer() -> AnswerStreamer:
    return AnswerStreamer(LLMClient())


def get_indexing_service(
    vector_store: VectorStore = Depends(get_vector_store),
    embeddings_client: Embedder = Depends(get_embeddings_client),
) -> IndexingService:
    return IndexingService(vector_store, embeddings_client)


def get_rag_service(
    vector_store: VectorStore = Depends(get_vector_store),
    embeddings_client: Embedder = Depends(get_embeddings_client),
    streamer: AnswerStreamer = Depends(get_answer_streamer),
) -> RAGService:
    return RAGService(vector_store=vector_store, embeddings_client=embeddings_client, streamer=streamer)


# --- Routes ---
@router.post("/upload", response_model=UploadResponse, summary="Upload and index a PDF")
def upload(
    request: Request,
    pdf: Optional[UploadFile] = File(default=None),
    service: IndexingService = Depends(get_indexing_service),
) -> UploadResponse:
    if pdf is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    filename = f"{uuid.uuid4().hex}.pdf"
    path = upload_dir / filename

    pdf_id = str(uuid.uuid4())
    logger.info("Upload received", extra={"pdf_id": pdf_id, "upload_name": pdf.filename})
    indexed = False
    try:
        with path.open("wb") as target:
            shutil.copyfileobj(pdf.file, target)
        if path.stat().st_size == 0:
            raise InvalidRequestError("Uploaded file is empty", {"field": "pdf"})
        pages = extract_pages(path)
        summary = service.index_document(pdf_id, pages)
        indexed = True
    except InvalidRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc
    except EmptyDocumentError as exc:
        raise HTTPException(status_code=422, detail=exc.message) from exc
    except ServiceError as exc:
        logger.warning("Upload indexing failed", extra={"pdf_id": pdf_id, "error": str(exc)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="PDF processing failed") from exc
    finally:
        # the stored file only outlives a fully indexed upload
        if not indexed:
            path.unlink(missing_ok=True)

    logger.info("Upload indexed", extra={"pdf_id": pdf_id, "chunks": summary.chunks})
    return UploadResponse(pdf_id=pdf_id, file_url=f"{str(request.base_url).rstrip('/')}/uploads/{filename}")


@router.post("/ask", summary="Stream an answer about an uploaded PDF")
def ask(request: AskRequest, service: RAGService = Depends(get_rag_service)) -> StreamingResponse:
    logger.info("Ask request", extra={"pdf_id": request.pdf_id, "len": len(request.question)})
    try:
        stream = service.ask(request.pdf_id, request.question)
    except InvalidRequestError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="PDF not found") from exc
    except ServiceError as exc:
        logger.warning("Ask failed", extra={"pdf_id": request.pdf_id, "error": str(exc)})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Query failed") from exc

    return StreamingResponse(_sse_frames(stream), media_type="text/event-stream", headers=SSE_HEADERS)


def _sse_frames(stream: AnswerStream) -> Iterator[str]:
    events = iter(stream)
    try:
        for event in events:
            yield event.to_sse()
    finally:
        # Client disconnects close this generator; pass that on to the provider stream.
        close = getattr(events, "close", None)
        if close is not None:
            close()


__all__ = ["router", "get_embeddings_client", "get_answer_streamer", "get_indexing_service", "get_rag_service"]
