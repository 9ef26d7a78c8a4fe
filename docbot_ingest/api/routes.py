"""FastAPI routes for document upload, processing, listing and search.

Endpoint                                   Method  Description
---------------------------------------------------------------------------
/api/v1/documents/upload                   POST    Store a PDF/DOCX in object storage
/api/v1/documents/process                  POST    Run one ingestion invocation
/api/v1/documents                          GET     Page through a namespace manifest
/api/v1/documents/progress/{file_name}     GET     Latest progress for a file
/api/v1/documents/{document_id}            DELETE  Remove vectors, object and manifest entry
/api/v1/search                             POST    Semantic search within a namespace
/api/v1/faq-docx                           POST    Download question/answer pairs as DOCX
/api/v1/health                             GET     Health check + provider status

Service dependencies are resolved from ``app.state`` (populated by
``main._build_all``) through ``Annotated[..., Depends(helper)]`` aliases.
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from docbot_ingest import __version__
from docbot_ingest.api.schemas import (
    DeleteDocumentResponse,
    ErrorResponse,
    FAQExportRequest,
    HealthResponse,
    ProgressResponse,
    SearchMatch,
    SearchRequest,
    SearchResponse,
    UploadResponse,
)
from docbot_ingest.models.documents import DocumentPage
from docbot_ingest.models.ingestion import IngestionRequest
from docbot_ingest.pipeline.orchestrator import IngestionOrchestrator
from docbot_ingest.pipeline.progress_tracker import ProgressTracker
from docbot_ingest.services.document_service import DocumentService
from docbot_ingest.services.extraction.page_extractor import CONTENT_TYPES
from docbot_ingest.services.faq_export import build_faq_docx
from docbot_ingest.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")

_MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MB
_UPLOAD_CHUNK_SIZE = 64 * 1024  # 64 KB


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_orchestrator(request: Request) -> IngestionOrchestrator:
    """Return the ingestion orchestrator from application state."""
    return request.app.state.orchestrator


def _get_document_service(request: Request) -> DocumentService:
    """Return the document service from application state."""
    return request.app.state.document_service


def _get_progress_tracker(request: Request) -> ProgressTracker:
    """Return the progress tracker from application state."""
    return request.app.state.progress_tracker


OrchestratorDep = Annotated[IngestionOrchestrator, Depends(_get_orchestrator)]
DocumentServiceDep = Annotated[DocumentService, Depends(_get_document_service)]
TrackerDep = Annotated[ProgressTracker, Depends(_get_progress_tracker)]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.post(
    "/documents/upload",
    response_model=UploadResponse,
    response_model_by_alias=True,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
    summary="Upload a PDF or DOCX file into a namespace",
)
async def upload_document(
    file: UploadFile,
    documents: DocumentServiceDep,
    namespace: Annotated[str, Form()],
) -> UploadResponse:
    # Read in 64 KB chunks so oversized uploads are rejected early.
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > _MAX_FILE_SIZE:
            raise HTTPException(
                status_code=413,
                detail=f"File too large: maximum is {_MAX_FILE_SIZE // (1024 * 1024)} MB",
            )
        chunks.append(chunk)
    data = b"".join(chunks)
    del chunks

    file_name = file.filename or ""
    result = await documents.upload(namespace, file_name, data)
    message = (
        f"{file_name} already exists in storage"
        if result.already_exists
        else f"{file_name} uploaded successfully"
    )
    return UploadResponse(
        message=message,
        file_key=result.file_key,
        hash=result.content_hash,
        file_name=result.file_name,
        already_exists=result.already_exists,
    )


@router.post(
    "/documents/process",
    summary="Run one time-boxed ingestion invocation",
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def process_document(
    payload: IngestionRequest,
    orchestrator: OrchestratorDep,
) -> JSONResponse:
    """Embed the next window of batches; the body says whether to call again."""
    outcome = await orchestrator.process(payload)
    return JSONResponse(status_code=outcome.status_code, content=outcome.to_response())


@router.get(
    "/documents",
    response_model=DocumentPage,
    response_model_by_alias=True,
    summary="List documents in a namespace",
)
async def list_documents(
    documents: DocumentServiceDep,
    namespace: Annotated[str, Query(min_length=1)],
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(alias="perPage", ge=1, le=100)] = 10,
) -> DocumentPage:
    return await documents.list_documents(namespace, page, per_page)


@router.get(
    "/documents/progress/{file_name}",
    response_model=ProgressResponse,
    response_model_by_alias=True,
    summary="Latest progress for a file being uploaded or processed",
)
async def get_progress(file_name: str, tracker: TrackerDep) -> ProgressResponse:
    status = tracker.get_status(file_name)
    if status is None:
        raise HTTPException(status_code=404, detail=f"No progress recorded for {file_name}")
    return ProgressResponse(**status)


@router.delete(
    "/documents/{document_id:path}",
    response_model=DeleteDocumentResponse,
    response_model_by_alias=True,
    summary="Delete a document's vectors, stored object and manifest entry",
)
async def delete_document(
    document_id: str,
    documents: DocumentServiceDep,
    namespace: Annotated[str, Query(min_length=1)],
) -> DeleteDocumentResponse:
    deleted = await documents.delete_document(namespace, document_id)
    return DeleteDocumentResponse(message="Document deleted successfully", vectors_deleted=deleted)


# ---------------------------------------------------------------------------
# FAQ export
# ---------------------------------------------------------------------------


@router.post(
    "/faq-docx",
    response_class=Response,
    responses={400: {"model": ErrorResponse}},
    summary="Download question/answer pairs as a DOCX file",
)
async def export_faq_docx(payload: FAQExportRequest) -> Response:
    file_name, data = build_faq_docx(
        [(item.question, item.answer) for item in payload.faqs], payload.title
    )
    return Response(
        content=data,
        media_type=CONTENT_TYPES[".docx"],
        headers={"Content-Disposition": f'attachment; filename="{file_name}"'},
    )


# ---------------------------------------------------------------------------
# Search / health
# ---------------------------------------------------------------------------


@router.post(
    "/search",
    response_model=SearchResponse,
    response_model_by_alias=True,
    summary="Semantic search within a namespace",
)
async def search(payload: SearchRequest, documents: DocumentServiceDep) -> SearchResponse:
    matches = await documents.search(payload.namespace, payload.query, payload.top_k)
    return SearchResponse(
        query=payload.query,
        matches=[SearchMatch(id=m.id, score=m.score, metadata=m.metadata) for m in matches],
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = {}
    embedding = getattr(request.app.state, "embedding_provider", None)
    vector_store = getattr(request.app.state, "vector_store", None)
    object_store = getattr(request.app.state, "object_store", None)

    if embedding is not None:
        providers["embedding"] = embedding.is_available()
        providers["embedding_name"] = embedding.get_provider_name()
    if vector_store is not None:
        providers["vector_store"] = vector_store.is_available()
    if object_store is not None:
        providers["object_store"] = object_store.get_provider_name()

    required = [providers.get("embedding", False), providers.get("vector_store", False)]
    if all(required):
        status = "healthy"
    elif any(required):
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(status=status, version=__version__, providers=providers)
