"""Document lifecycle operations around the ingestion pipeline.

Upload stores a source file under a content-addressed key
(``{namespace}/{sha256}-{file_name}``) and skips the write when that key
already exists.  Listing pages through the namespace manifest.  Deletion
removes a document's vectors, its stored object and its manifest entry, in
that order.  Search embeds a query and returns the nearest records.
"""

from __future__ import annotations

import hashlib

import structlog

from docbot_ingest.interfaces.embedding_provider import IEmbeddingProvider
from docbot_ingest.interfaces.object_store_provider import IObjectStoreProvider
from docbot_ingest.interfaces.vector_store_provider import IVectorStoreProvider
from docbot_ingest.models.documents import DocumentPage, UploadResult
from docbot_ingest.models.ingestion import IngestionPhase, QueryMatch
from docbot_ingest.pipeline.progress_tracker import ProgressEvent, ProgressSink, null_sink
from docbot_ingest.services.extraction.page_extractor import (
    CONTENT_TYPES,
    file_extension,
    is_supported,
)
from docbot_ingest.services.manifest_service import ManifestService
from docbot_ingest.utils.errors import InputValidationError

logger = structlog.get_logger(logger_name=__name__)


class DocumentService:
    """Upload, list, delete and search documents within a namespace."""

    def __init__(
        self,
        object_store: IObjectStoreProvider,
        vector_store: IVectorStoreProvider,
        embedding_provider: IEmbeddingProvider,
        manifest_service: ManifestService,
        progress: ProgressSink = null_sink,
    ) -> None:
        self._object_store = object_store
        self._vector_store = vector_store
        self._embedding = embedding_provider
        self._manifest = manifest_service
        self._progress = progress

    async def upload(self, namespace: str, file_name: str, data: bytes) -> UploadResult:
        """Store *data* and return its object key.

        Raises
        ------
        InputValidationError
            For a missing namespace/file name, an empty file or an
            unsupported extension.
        """
        if not namespace or not file_name:
            raise InputValidationError(message="namespace and file name are required")
        if not data:
            raise InputValidationError(message=f"{file_name} is empty")
        if not is_supported(file_name):
            raise InputValidationError(
                message=f"Unsupported file type: {file_extension(file_name) or file_name}"
            )

        await self._report(file_name, 0, "Calculating document hash...")
        content_hash = hashlib.sha256(data).hexdigest()
        file_key = f"{namespace}/{content_hash}-{file_name}"

        if await self._object_store.exists(file_key):
            logger.info("upload_skipped_existing", namespace=namespace, file_key=file_key)
            await self._report(file_name, 100, "File already exists in storage")
            return UploadResult(
                file_key=file_key,
                content_hash=content_hash,
                file_name=file_name,
                already_exists=True,
            )

        await self._report(file_name, 50, "Uploading to storage...")
        await self._object_store.put_object(
            file_key, data, content_type=CONTENT_TYPES[file_extension(file_name)]
        )
        logger.info("upload_stored", namespace=namespace, file_key=file_key, size=len(data))
        await self._report(file_name, 100, "Upload complete")
        return UploadResult(file_key=file_key, content_hash=content_hash, file_name=file_name)

    async def list_documents(self, namespace: str, page: int = 1, per_page: int = 10) -> DocumentPage:
        if not namespace:
            raise InputValidationError(message="namespace is required")
        entries, total, total_pages = await self._manifest.list_page(namespace, page, per_page)
        return DocumentPage(
            documents=entries,
            page=page,
            per_page=per_page,
            total=total,
            total_pages=total_pages,
        )

    async def delete_document(self, namespace: str, document_id: str) -> int:
        """Delete a document by manifest id or object key.

        Returns the number of vectors removed.
        """
        if not namespace or not document_id:
            raise InputValidationError(message="namespace and document id are required")

        entries = await self._manifest.read(namespace)
        match = next((e for e in entries if document_id in (e.id, e.object_key)), None)
        object_key = match.object_key if match else document_id

        deleted = await self._vector_store.delete_by_source(namespace, object_key)
        await self._object_store.delete_object(object_key)
        await self._manifest.delete_entry(namespace, document_id)
        logger.info(
            "document_deleted",
            namespace=namespace,
            object_key=object_key,
            vectors_deleted=deleted,
        )
        return deleted

    async def search(self, namespace: str, query: str, top_k: int = 5) -> list[QueryMatch]:
        if not namespace or not query.strip():
            raise InputValidationError(message="namespace and query are required")
        vector = await self._embedding.embed_single(query)
        return await self._vector_store.query(namespace, vector, top_k=top_k, include_metadata=True)

    async def _report(self, file_name: str, percent: int, message: str) -> None:
        try:
            await self._progress(
                ProgressEvent(
                    file_name=file_name,
                    phase=IngestionPhase.UPLOADING,
                    current=percent,
                    total=100,
                    message=message,
                )
            )
        except Exception as exc:
            logger.warning("progress_report_failed", error=str(exc))
