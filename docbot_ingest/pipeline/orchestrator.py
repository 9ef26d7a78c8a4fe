"""Embedding/upsert orchestrator for one document ingestion invocation.

State machine::

    PARSING -> CLASSIFYING -> CHUNKING -> EMBEDDING(i) -> UPSERTING(i)
        -> EMBEDDING(i+1) ... -> MANIFEST -> DONE
    any state -> FAILED (best-effort rollback of the source object)

A single invocation is time-boxed, so it processes at most
``batches_per_call`` embedding batches starting at ``request.start_batch``.
When batches remain, the outcome carries a continuation
(``nextBatch``/``totalBatches``/``batchSize``/``documentType``) and the
caller re-invokes with the advanced cursor.  Nothing is remembered between
invocations: the source object is re-read, re-extracted and re-chunked
deterministically each time, and ``documentType`` pins the strategy.

Every external call is retried with exponential backoff under a per-unit
timeout, and the whole invocation runs under one deadline.  A deadline hit
does not roll back (the caller may retry the same cursor); any other fatal
error deletes the source object.  Vectors upserted by earlier batches are
left in place.
"""

from __future__ import annotations

import hashlib
import re
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TypeVar

import structlog

from docbot_ingest.config.chunking import ChunkingConfig
from docbot_ingest.config.settings import Settings
from docbot_ingest.interfaces.embedding_provider import IEmbeddingProvider
from docbot_ingest.interfaces.object_store_provider import IObjectStoreProvider
from docbot_ingest.interfaces.vector_store_provider import IVectorStoreProvider
from docbot_ingest.models.chunks import ChunkResult
from docbot_ingest.models.documents import (
    DocumentManifestEntry,
    DocumentTypeHint,
    EffectiveDocType,
)
from docbot_ingest.models.ingestion import (
    BatchCursor,
    IngestionOutcome,
    IngestionPhase,
    IngestionRequest,
    VectorRecord,
)
from docbot_ingest.pipeline.progress_tracker import ProgressEvent, ProgressSink, null_sink
from docbot_ingest.services.chunking.classifier import classify
from docbot_ingest.services.chunking.router import ChunkRouter
from docbot_ingest.services.extraction.page_extractor import ExtractedDocument, PageExtractor
from docbot_ingest.services.manifest_service import ManifestService
from docbot_ingest.services.metadata_builder import (
    MetadataBuilder,
    embedding_input,
    vector_id,
)
from docbot_ingest.utils.concurrency import throttled_gather
from docbot_ingest.utils.errors import (
    DocbotError,
    DuplicateContentError,
    ExtractionError,
    InputValidationError,
    InvocationTimeoutError,
)
from docbot_ingest.utils.logging import bind_ingestion_context, clear_ingestion_context, get_logger
from docbot_ingest.utils.retry import retry_with_backoff, with_deadline

_T = TypeVar("_T")

_NAMESPACE_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$")
_DOC_TYPE_VALUES = frozenset(
    [h.value for h in DocumentTypeHint] + [t.value for t in EffectiveDocType]
)
# Phases whose InputValidationError is a rejected request rather than a failed run.
_REQUEST_CHECK_PHASES = frozenset(
    {IngestionPhase.PARSING, IngestionPhase.CLASSIFYING, IngestionPhase.CHUNKING}
)


@dataclass(frozen=True)
class BatchLimits:
    """Batch sizes, retry policy and timeouts for one invocation."""

    embedding_batch_size: int = 50
    vector_batch_size: int = 50
    batches_per_call: int = 10
    embedding_concurrency: int = 10
    max_retries: int = 3
    retry_initial_delay: float = 2.0
    unit_timeout: float = 90.0
    invocation_timeout: float = 120.0
    embedding_max_chars: int = 8000
    sample_chars: int = 10000

    @classmethod
    def from_settings(cls, settings: Settings) -> BatchLimits:
        return cls(
            embedding_batch_size=settings.embedding_batch_size,
            vector_batch_size=settings.vector_batch_size,
            batches_per_call=settings.batches_per_call,
            embedding_concurrency=settings.embedding_concurrency,
            max_retries=settings.max_retries,
            retry_initial_delay=settings.retry_initial_delay,
            unit_timeout=settings.unit_timeout,
            invocation_timeout=settings.invocation_timeout,
            embedding_max_chars=settings.embedding_max_chars,
            sample_chars=settings.sample_chars,
        )


class _RunState:
    """Mutable bookkeeping for the invocation in flight."""

    def __init__(self) -> None:
        self.phase = IngestionPhase.PARSING
        self.doc_type: EffectiveDocType | None = None


class IngestionOrchestrator:
    """Runs one time-boxed ingestion invocation.

    All collaborators are injected; ``sleep`` is forwarded to the retry
    helper so tests can skip real backoff delays.
    """

    def __init__(
        self,
        object_store: IObjectStoreProvider,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        manifest_service: ManifestService,
        chunking_config: ChunkingConfig | None = None,
        limits: BatchLimits | None = None,
        extractor: PageExtractor | None = None,
        metadata_builder: MetadataBuilder | None = None,
        progress: ProgressSink = null_sink,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        self._object_store = object_store
        self._embedding = embedding_provider
        self._vector_store = vector_store
        self._manifest = manifest_service
        self._chunking_config = chunking_config or ChunkingConfig()
        self._router = ChunkRouter(self._chunking_config)
        self._limits = limits or BatchLimits()
        self._extractor = extractor or PageExtractor()
        self._metadata = metadata_builder or MetadataBuilder()
        self._progress = progress
        self._sleep = sleep
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def process(self, request: IngestionRequest) -> IngestionOutcome:
        """Run one invocation and describe its result; never raises."""
        try:
            self._validate(request)
        except InputValidationError as exc:
            self._logger.warning("ingestion_rejected", error=exc.message)
            return self._failure(exc, IngestionPhase.PARSING)

        bind_ingestion_context(request.namespace, request.file_key)
        state = _RunState()
        self._logger.info(
            "ingestion_started",
            file_name=request.file_name,
            start_batch=request.start_batch,
            document_type=request.document_type,
        )
        try:
            return await with_deadline(
                self._run(request, state),
                self._limits.invocation_timeout,
                f"ingest {request.file_key}",
            )
        except InvocationTimeoutError as exc:
            self._logger.error("ingestion_timed_out", phase=state.phase.value, error=exc.message)
            await self._report(request, IngestionPhase.FAILED, message=exc.message)
            return self._failure(
                exc,
                state.phase,
                next_batch=request.start_batch,
                document_type=state.doc_type.value if state.doc_type else None,
            )
        except DocbotError as exc:
            if isinstance(exc, InputValidationError) and state.phase in _REQUEST_CHECK_PHASES:
                self._logger.warning(
                    "ingestion_rejected", phase=state.phase.value, error=exc.message
                )
                return self._failure(exc, state.phase)
            self._logger.error(
                "ingestion_failed",
                phase=state.phase.value,
                error_category=exc.error_category,
                error=str(exc),
            )
            await self._rollback(request.file_key)
            await self._report(request, IngestionPhase.FAILED, message=exc.message)
            return self._failure(exc, state.phase)
        except Exception as exc:
            self._logger.exception("ingestion_failed_unexpectedly", phase=state.phase.value)
            await self._rollback(request.file_key)
            await self._report(request, IngestionPhase.FAILED, message=str(exc))
            return self._failure(DocbotError(message=str(exc)), state.phase)
        finally:
            clear_ingestion_context()

    # ------------------------------------------------------------------
    # Invocation body
    # ------------------------------------------------------------------

    async def _run(self, request: IngestionRequest, state: _RunState) -> IngestionOutcome:
        # --- Parsing ---------------------------------------------------
        state.phase = IngestionPhase.PARSING
        await self._report(request, state.phase, message="Reading document")
        data = await self._retry(
            lambda: self._object_store.get_object(request.file_key),
            f"get_object {request.file_key}",
        )
        if data is None:
            raise InputValidationError(message=f"File not found: {request.file_key}")
        content_hash = hashlib.sha256(data).hexdigest()
        document = self._extractor.extract(data, request.file_name)

        # --- Classifying -----------------------------------------------
        state.phase = IngestionPhase.CLASSIFYING
        await self._report(request, state.phase, message="Detecting document structure")
        doc_type = self._resolve_doc_type(request.document_type, document)
        state.doc_type = doc_type

        # --- Chunking --------------------------------------------------
        state.phase = IngestionPhase.CHUNKING
        await self._report(request, state.phase, message=f"Chunking as {doc_type.value}")
        result = self._router.route(document.blocks, doc_type, request.namespace)
        if not result.chunks:
            raise ExtractionError(message=f"No chunks could be produced from {request.file_name}")
        state.doc_type = result.document_type

        cursor = BatchCursor.start(
            len(result),
            self._limits.embedding_batch_size,
            result.document_type,
            start_batch_index=request.start_batch,
        )
        if request.start_batch > cursor.total_batches:
            raise InputValidationError(
                message=(
                    f"startBatch {request.start_batch} is beyond the document's "
                    f"{cursor.total_batches} batches"
                )
            )

        # --- Embedding / upserting -------------------------------------
        window = cursor.window(self._limits.batches_per_call)
        if window:
            await self._process_window(request, result, cursor, window, state)
        cursor = cursor.advance(len(window))

        if not cursor.is_complete:
            self._logger.info(
                "ingestion_continuation",
                next_batch=cursor.start_batch_index,
                total_batches=cursor.total_batches,
            )
            return IngestionOutcome(
                success=True,
                phase=IngestionPhase.UPSERTING,
                message=(
                    f"Processed batches {window.start + 1}-{window.stop} "
                    f"of {cursor.total_batches}"
                ),
                next_phase=IngestionPhase.EMBEDDING,
                next_batch=cursor.start_batch_index,
                total_batches=cursor.total_batches,
                batch_size=cursor.batch_size,
                document_type=cursor.effective_doc_type.value,
            )

        # --- Manifest --------------------------------------------------
        state.phase = IngestionPhase.MANIFEST
        await self._report(request, state.phase, message="Updating document manifest")
        await self._write_manifest(request, result, content_hash)

        state.phase = IngestionPhase.DONE
        await self._report(
            request,
            state.phase,
            current=cursor.total_batches,
            total=cursor.total_batches,
            message="Processing complete",
        )
        self._logger.info(
            "ingestion_completed",
            chunk_count=len(result),
            document_type=result.document_type.value,
        )
        return IngestionOutcome(
            success=True,
            phase=IngestionPhase.DONE,
            message="Document processed successfully",
            completed=True,
            chunk_count=len(result),
            document_type=result.document_type.manifest_type,
        )

    async def _process_window(
        self,
        request: IngestionRequest,
        result: ChunkResult,
        cursor: BatchCursor,
        window: range,
        state: _RunState,
    ) -> None:
        state.phase = IngestionPhase.EMBEDDING
        await self._report(
            request,
            state.phase,
            current=window.start,
            total=cursor.total_batches,
            message=f"Embedding batches {window.start + 1}-{window.stop} of {cursor.total_batches}",
        )

        batch_texts = [
            [
                embedding_input(chunk, self._limits.embedding_max_chars)
                for chunk in result.chunks[cursor.chunk_slice(batch_index)]
            ]
            for batch_index in window
        ]
        # Results come back in window order; batch k's vectors belong to
        # batch k's chunks.
        batch_vectors = await throttled_gather(
            [
                self._embed_batch(texts, batch_index)
                for texts, batch_index in zip(batch_texts, window, strict=True)
            ],
            limit=min(self._limits.embedding_concurrency, self._limits.batches_per_call),
        )

        state.phase = IngestionPhase.UPSERTING
        for batch_index, vectors in zip(window, batch_vectors, strict=True):
            chunk_slice = cursor.chunk_slice(batch_index)
            chunks = result.chunks[chunk_slice]
            records = [
                VectorRecord(
                    id=vector_id(request.file_name, chunk, index),
                    values=values,
                    metadata=self._metadata.build(
                        chunk,
                        index=index,
                        file_name=request.file_name,
                        object_key=request.file_key,
                        namespace=request.namespace,
                        doc_type=result.document_type,
                    ),
                )
                for index, chunk, values in zip(
                    range(chunk_slice.start, chunk_slice.start + len(chunks)),
                    chunks,
                    vectors,
                    strict=True,
                )
            ]
            for start in range(0, len(records), self._limits.vector_batch_size):
                upsert_slice = records[start : start + self._limits.vector_batch_size]
                await self._retry(
                    lambda records=upsert_slice: self._vector_store.upsert(
                        request.namespace, records
                    ),
                    f"upsert batch {batch_index}",
                )
            self._logger.info(
                "batch_upserted",
                batch=batch_index + 1,
                total_batches=cursor.total_batches,
                records=len(records),
            )
            await self._report(
                request,
                state.phase,
                current=batch_index + 1,
                total=cursor.total_batches,
                message=f"Stored batch {batch_index + 1} of {cursor.total_batches}",
            )

    async def _embed_batch(self, texts: list[str], batch_index: int) -> list[list[float]]:
        vectors = await self._retry(
            lambda: self._embedding.embed(texts),
            f"embed batch {batch_index}",
        )
        if len(vectors) != len(texts):
            raise DocbotError(
                message=(
                    f"Embedding batch {batch_index} returned {len(vectors)} vectors "
                    f"for {len(texts)} chunks"
                ),
                provider_name=self._embedding.get_provider_name(),
            )
        dimension = self._embedding.get_dimension()
        if any(len(v) != dimension for v in vectors):
            raise DocbotError(
                message=f"Embedding batch {batch_index} has vectors of the wrong dimension",
                provider_name=self._embedding.get_provider_name(),
            )
        return vectors

    async def _write_manifest(
        self, request: IngestionRequest, result: ChunkResult, content_hash: str
    ) -> None:
        entry = DocumentManifestEntry(
            id=str(uuid.uuid4()),
            source=request.file_name,
            object_key=request.file_key,
            created_at=datetime.now(timezone.utc).isoformat(),
            namespace=request.namespace,
            content_hash=content_hash,
            document_type=result.document_type.manifest_type,
            chunk_count=len(result),
        )
        try:
            await self._retry(
                lambda: self._manifest.write(request.namespace, entry),
                "manifest write",
            )
        except DuplicateContentError:
            # Same bytes were ingested before; their vectors carry the same ids.
            self._logger.info("manifest_duplicate_ignored", content_hash=content_hash)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(request: IngestionRequest) -> None:
        if not request.namespace or not _NAMESPACE_RE.match(request.namespace):
            raise InputValidationError(message="namespace is missing or malformed")
        if not request.file_key or ".." in request.file_key.split("/"):
            raise InputValidationError(message="fileKey is missing or malformed")
        if not request.file_name or "/" in request.file_name:
            raise InputValidationError(message="fileName is missing or malformed")
        if request.document_type and request.document_type.strip().lower() not in _DOC_TYPE_VALUES:
            raise InputValidationError(
                message=f"Unknown documentType: {request.document_type}"
            )

    def _resolve_doc_type(
        self, requested: str | None, document: ExtractedDocument
    ) -> EffectiveDocType:
        value = (requested or "").strip().lower()
        if value in {t.value for t in EffectiveDocType}:
            # Continuations pass back the type chosen by the first invocation.
            return EffectiveDocType(value)
        return classify(
            document.text[: self._limits.sample_chars],
            hint=value or None,
            total_pages=document.total_pages,
            thresholds=self._chunking_config.classifier,
        )

    async def _retry(self, operation: Callable[[], Awaitable[_T]], name: str) -> _T:
        kwargs = {"sleep": self._sleep} if self._sleep is not None else {}
        return await retry_with_backoff(
            operation,
            operation_name=name,
            max_attempts=self._limits.max_retries,
            initial_delay=self._limits.retry_initial_delay,
            attempt_timeout=self._limits.unit_timeout,
            **kwargs,
        )

    async def _rollback(self, file_key: str) -> None:
        try:
            await self._object_store.delete_object(file_key)
            self._logger.info("rollback_succeeded", file_key=file_key)
        except Exception as exc:
            self._logger.error("rollback_failed", file_key=file_key, error=str(exc))

    async def _report(
        self,
        request: IngestionRequest,
        phase: IngestionPhase,
        current: int = 0,
        total: int = 0,
        message: str = "",
    ) -> None:
        try:
            await self._progress(
                ProgressEvent(
                    file_name=request.file_name,
                    phase=phase,
                    current=current,
                    total=total,
                    message=message,
                )
            )
        except Exception as exc:
            self._logger.warning("progress_report_failed", error=str(exc))

    @staticmethod
    def _failure(
        exc: DocbotError,
        phase: IngestionPhase,
        next_batch: int | None = None,
        document_type: str | None = None,
    ) -> IngestionOutcome:
        return IngestionOutcome(
            success=False,
            phase=IngestionPhase.FAILED,
            message=f"Processing failed during {phase.value}",
            error=exc.error_category,
            detail=exc.message,
            next_batch=next_batch,
            document_type=document_type,
            status_code=exc.status_code,
        )
