"""Per-namespace document manifest stored as JSON in object storage.

The manifest for namespace ``hr`` lives at ``manifests/hr.json`` and holds a
JSON array of :class:`DocumentManifestEntry` objects with camelCase keys.
Updates are read-modify-write with no locking; one writer per namespace at
a time is assumed.

Writing a single entry whose ``contentHash`` is already present raises
:class:`~docbot_ingest.utils.errors.DuplicateContentError`; otherwise the
entry replaces the one with the same ``id`` or is appended.  Writing a list
replaces the whole manifest.
"""

from __future__ import annotations

import json
import math

import structlog
from pydantic import TypeAdapter, ValidationError

from docbot_ingest.interfaces.object_store_provider import IObjectStoreProvider
from docbot_ingest.models.documents import DocumentManifestEntry
from docbot_ingest.utils.errors import DocbotError, DuplicateContentError

logger = structlog.get_logger(logger_name=__name__)

_ENTRIES = TypeAdapter(list[DocumentManifestEntry])


def manifest_key(namespace: str) -> str:
    return f"manifests/{namespace}.json"


class ManifestService:
    """Reads and writes namespace manifests through an object store."""

    def __init__(self, object_store: IObjectStoreProvider) -> None:
        self._store = object_store

    async def read(self, namespace: str) -> list[DocumentManifestEntry]:
        """Return the namespace's entries; an absent manifest is an empty list."""
        raw = await self._store.get_object(manifest_key(namespace))
        if raw is None:
            logger.debug("manifest_absent", namespace=namespace)
            return []
        try:
            return _ENTRIES.validate_json(raw or b"[]")
        except ValidationError as exc:
            logger.error("manifest_corrupt", namespace=namespace, error=str(exc))
            raise DocbotError(
                message=f"Manifest for namespace '{namespace}' is not valid",
                provider_name="manifest",
            ) from exc

    async def write(
        self,
        namespace: str,
        entries: DocumentManifestEntry | list[DocumentManifestEntry],
    ) -> list[DocumentManifestEntry]:
        """Add/replace one entry, or replace the whole manifest with a list.

        Raises
        ------
        DuplicateContentError
            When a single entry's content hash already exists.
        """
        if isinstance(entries, list):
            updated = list(entries)
        else:
            existing = await self.read(namespace)
            entry = entries
            if entry.content_hash is not None:
                duplicate = next(
                    (doc for doc in existing if doc.content_hash == entry.content_hash), None
                )
                if duplicate is not None:
                    logger.info(
                        "manifest_duplicate_content",
                        namespace=namespace,
                        existing_id=duplicate.id,
                        content_hash=entry.content_hash,
                    )
                    raise DuplicateContentError(provider_name="manifest")

            index = next((i for i, doc in enumerate(existing) if doc.id == entry.id), None)
            updated = existing
            if index is None:
                updated.append(entry)
            else:
                updated[index] = entry

        await self._save(namespace, updated)
        logger.info("manifest_updated", namespace=namespace, documents=len(updated))
        return updated

    async def create_initial(self, namespace: str) -> None:
        """Write an empty manifest for *namespace*."""
        await self._save(namespace, [])
        logger.info("manifest_created", namespace=namespace)

    async def delete_entry(self, namespace: str, document_id: str) -> DocumentManifestEntry | None:
        """Remove the entry whose ``id`` or ``objectKey`` equals *document_id*.

        Returns the removed entry, or ``None`` when nothing matched.
        """
        existing = await self.read(namespace)
        removed = next(
            (doc for doc in existing if document_id in (doc.id, doc.object_key)), None
        )
        if removed is None:
            logger.info("manifest_entry_not_found", namespace=namespace, document_id=document_id)
            return None
        remaining = [doc for doc in existing if document_id not in (doc.id, doc.object_key)]
        await self._save(namespace, remaining)
        logger.info("manifest_entry_deleted", namespace=namespace, document_id=document_id)
        return removed

    async def list_page(
        self, namespace: str, page: int = 1, per_page: int = 10
    ) -> tuple[list[DocumentManifestEntry], int, int]:
        """Return ``(entries, total, total_pages)`` for 1-based *page*.

        A namespace without a manifest gets an empty one created.
        """
        if not await self._store.exists(manifest_key(namespace)):
            await self.create_initial(namespace)
            entries: list[DocumentManifestEntry] = []
        else:
            entries = await self.read(namespace)

        per_page = max(1, per_page)
        total = len(entries)
        total_pages = math.ceil(total / per_page) if total else 0
        start = (max(1, page) - 1) * per_page
        return entries[start : start + per_page], total, total_pages

    async def _save(self, namespace: str, entries: list[DocumentManifestEntry]) -> None:
        body = json.dumps(
            [entry.model_dump(by_alias=True, exclude_none=True) for entry in entries],
            indent=2,
        )
        await self._store.put_object(
            manifest_key(namespace), body.encode("utf-8"), content_type="application/json"
        )
