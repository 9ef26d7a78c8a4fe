"""Pydantic v2 request/response schemas for the docbot-ingest HTTP API.

JSON bodies use camelCase keys (``fileKey``, ``startBatch``, ``perPage``)
so existing dashboard clients keep working; Python code uses snake_case
attribute names.  The process endpoint reuses
:class:`~docbot_ingest.models.ingestion.IngestionRequest` and returns
:meth:`IngestionOutcome.to_response` directly.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadResponse(_CamelModel):
    """Result of ``POST /api/v1/documents/upload``."""

    message: str
    file_key: str
    hash: str
    file_name: str
    already_exists: bool = False


class DeleteDocumentResponse(_CamelModel):
    message: str
    vectors_deleted: int = 0


class ProgressResponse(_CamelModel):
    """Latest progress snapshot for a file."""

    file_name: str
    phase: str
    stage: str
    current: int = 0
    total: int = 0
    message: str = ""


class SearchRequest(_CamelModel):
    namespace: str = Field(..., min_length=1)
    query: str = Field(..., min_length=1, max_length=2000)
    top_k: int = Field(default=5, ge=1, le=50)


class SearchMatch(_CamelModel):
    id: str
    score: float
    metadata: dict[str, Any] | None = None


class SearchResponse(_CamelModel):
    query: str
    matches: list[SearchMatch] = Field(default_factory=list)


class FAQItem(_CamelModel):
    question: str = ""
    answer: str = ""


class FAQExportRequest(_CamelModel):
    """Body of ``POST /api/v1/faq-docx``."""

    faqs: list[FAQItem] = Field(default_factory=list)
    title: str | None = None


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
