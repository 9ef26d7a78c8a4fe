"""Ingestion run models: batch cursor, vector records, invocation request/outcome.

The batch cursor is the only state carried between invocations.  It is
handed back to the caller inside every continuation response and passed
in again on the next call; the server never remembers it.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from docbot_ingest.models.documents import EffectiveDocType


class IngestionPhase(str, Enum):
    """States of one ingestion run."""

    UPLOADING = "uploading"
    PARSING = "parsing"
    CLASSIFYING = "classifying"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    UPSERTING = "upserting"
    MANIFEST = "manifest"
    DONE = "done"
    FAILED = "failed"


class BatchCursor(BaseModel):
    """Cross-invocation resumption state for the embedding batch loop."""

    model_config = ConfigDict(frozen=True)

    start_batch_index: int = Field(default=0, ge=0)
    total_batches: int = Field(ge=0)
    batch_size: int = Field(ge=1)
    effective_doc_type: EffectiveDocType

    @classmethod
    def start(
        cls,
        chunk_count: int,
        batch_size: int,
        effective_doc_type: EffectiveDocType,
        start_batch_index: int = 0,
    ) -> BatchCursor:
        return cls(
            start_batch_index=start_batch_index,
            total_batches=math.ceil(chunk_count / batch_size),
            batch_size=batch_size,
            effective_doc_type=effective_doc_type,
        )

    @property
    def is_complete(self) -> bool:
        return self.start_batch_index >= self.total_batches

    def window(self, batches_per_call: int) -> range:
        """Batch indices this invocation is allowed to process."""
        end = min(self.start_batch_index + batches_per_call, self.total_batches)
        return range(self.start_batch_index, end)

    def advance(self, batches_done: int) -> BatchCursor:
        return self.model_copy(
            update={
                "start_batch_index": min(
                    self.start_batch_index + batches_done, self.total_batches
                )
            }
        )

    def chunk_slice(self, batch_index: int) -> slice:
        start = batch_index * self.batch_size
        return slice(start, start + self.batch_size)


class VectorRecord(BaseModel):
    """One vector-database record: stable id, embedding values, flat metadata."""

    model_config = ConfigDict(frozen=True)

    id: str
    values: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)


class QueryMatch(BaseModel):
    """A vector-store query hit."""

    model_config = ConfigDict(frozen=True)

    id: str
    score: float
    metadata: dict[str, Any] | None = None


class IngestionRequest(BaseModel):
    """Input of one processing invocation."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    namespace: str = ""
    file_key: str = ""
    file_name: str = ""
    # Either a hint (faq/glossary/manual) or, on continuations, the
    # effective type returned by the previous invocation.
    document_type: str | None = None
    start_batch: int = Field(default=0, ge=0)


class IngestionOutcome(BaseModel):
    """Result of one processing invocation.

    Terminal outcomes set ``completed``/``chunk_count``; continuations set
    ``next_phase``/``next_batch``/``total_batches``/``batch_size``; failures
    set ``error``/``detail``.  ``status_code`` is the HTTP-equivalent status
    and is not part of the JSON body.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    success: bool
    phase: IngestionPhase
    message: str
    completed: bool | None = None
    chunk_count: int | None = None
    document_type: str | None = None
    next_phase: IngestionPhase | None = None
    next_batch: int | None = None
    total_batches: int | None = None
    batch_size: int | None = None
    error: str | None = None
    detail: str | None = None
    status_code: int = Field(default=200, exclude=True)

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
