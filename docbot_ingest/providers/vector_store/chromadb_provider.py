"""ChromaDB vector store provider adapter.

Wraps ``chromadb.PersistentClient`` to implement :class:`IVectorStoreProvider`.
Each namespace gets its own collection (``<prefix><namespace>``) using
cosine distance.  Fully local, no external service required.
"""

from __future__ import annotations

import os
import re
from typing import Any

# ChromaDB's anonymous telemetry is opt-out; the env var must be set
# before chromadb is imported.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import chromadb
import structlog

from docbot_ingest.interfaces.vector_store_provider import IVectorStoreProvider
from docbot_ingest.models.ingestion import QueryMatch, VectorRecord
from docbot_ingest.utils.errors import ConfigurationError, TransientExternalError

logger = structlog.get_logger(logger_name=__name__)

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]+")
_MAX_COLLECTION_NAME = 63


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """No-op embedding function that prevents ChromaDB from loading a model.

    docbot-ingest always passes pre-computed embeddings, so ChromaDB's
    built-in embedding is never invoked.  Without this, ChromaDB downloads
    its default ONNX model on collection creation.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "docbot-ingest uses pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        """Return function name (required by ChromaDB's EmbeddingFunction protocol)."""
        return "noop_precomputed"


class ChromaDBProvider(IVectorStoreProvider):
    """Vector store provider backed by ChromaDB with local persistence.

    Collections are opened lazily, once per namespace, and cached.  When
    *expected_dimension* is given, the first stored vector of each
    collection is checked against it on open.
    """

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        collection_prefix: str = "docbot-",
        expected_dimension: int | None = None,
        client: Any | None = None,
    ) -> None:
        self._persist_directory = persist_directory
        self._collection_prefix = collection_prefix
        self._expected_dimension = expected_dimension
        self._client = client or chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        self._collections: dict[str, Any] = {}

    # ------------------------------------------------------------------
    # IVectorStoreProvider implementation
    # ------------------------------------------------------------------

    async def upsert(self, namespace: str, records: list[VectorRecord]) -> int:
        """Upsert *records* into the namespace's collection."""
        if not records:
            return 0

        try:
            collection = self._collection_for(namespace)
            collection.upsert(
                ids=[r.id for r in records],
                embeddings=[r.values for r in records],
                documents=[str(r.metadata.get("text", "")) for r in records],
                metadatas=[self._to_chroma_metadata(r.metadata) for r in records],
            )
        except ConfigurationError:
            raise
        except Exception as exc:
            raise TransientExternalError(
                message=f"ChromaDB upsert failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("chromadb_upsert", namespace=namespace, count=len(records))
        return len(records)

    async def query(
        self,
        namespace: str,
        vector: list[float],
        top_k: int = 5,
        include_metadata: bool = True,
    ) -> list[QueryMatch]:
        """Nearest-neighbour search; cosine distance is converted to similarity."""
        try:
            collection = self._collection_for(namespace)
            count = collection.count()
            if count == 0:
                return []
            include = ["distances", "metadatas"] if include_metadata else ["distances"]
            results = collection.query(
                query_embeddings=[vector],
                n_results=min(top_k, count),
                include=include,
            )
        except ConfigurationError:
            raise
        except Exception as exc:
            raise TransientExternalError(
                message=f"ChromaDB query failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        ids = results["ids"][0] if results.get("ids") else []
        distances = results["distances"][0] if results.get("distances") else [0.0] * len(ids)
        metadatas = (
            results["metadatas"][0]
            if include_metadata and results.get("metadatas")
            else [None] * len(ids)
        )

        matches = [
            QueryMatch(
                id=record_id,
                score=max(0.0, min(1.0, 1.0 - distance)),
                metadata=dict(meta) if meta is not None else None,
            )
            for record_id, distance, meta in zip(ids, distances, metadatas, strict=True)
        ]
        matches.sort(key=lambda m: m.score, reverse=True)

        logger.info(
            "chromadb_query",
            namespace=namespace,
            results_count=len(matches),
            top_score=matches[0].score if matches else 0.0,
        )
        return matches

    async def delete_by_source(self, namespace: str, object_key: str) -> int:
        """Delete all records whose ``objectKey`` metadata equals *object_key*."""
        try:
            collection = self._collection_for(namespace)
            existing = collection.get(where={"objectKey": object_key}, include=[])
            count = len(existing["ids"]) if existing["ids"] else 0
            if count > 0:
                collection.delete(where={"objectKey": object_key})
        except ConfigurationError:
            raise
        except Exception as exc:
            raise TransientExternalError(
                message=f"ChromaDB delete_by_source failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "chromadb_delete_by_source",
            namespace=namespace,
            object_key=object_key,
            deleted_count=count,
        )
        return count

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """Return ``True`` if the ChromaDB client responds to a heartbeat."""
        try:
            self._client.heartbeat()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def collection_name(self, namespace: str) -> str:
        """Map a namespace to a valid ChromaDB collection name.

        Names are limited to ``[a-zA-Z0-9._-]``, must start and end with an
        alphanumeric character and are capped at 63 characters.
        """
        raw = _INVALID_NAME_CHARS.sub("-", f"{self._collection_prefix}{namespace}")
        name = raw[:_MAX_COLLECTION_NAME].strip("._-")
        if len(name) < 3:
            name = f"ns-{name}".ljust(3, "0")
        return name

    def _collection_for(self, namespace: str) -> Any:
        cached = self._collections.get(namespace)
        if cached is not None:
            return cached

        name = self.collection_name(namespace)
        # Collections created by another embedding function configuration
        # reject a mismatched one with ValueError; reopen without it.
        try:
            collection = self._client.get_or_create_collection(
                name=name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            collection = self._client.get_or_create_collection(
                name=name,
                metadata={"hnsw:space": "cosine"},
            )

        self._validate_dimension(collection, namespace)
        self._collections[namespace] = collection
        return collection

    def _validate_dimension(self, collection: Any, namespace: str) -> None:
        """Fail fast when stored vectors disagree with the embedding model."""
        if self._expected_dimension is None:
            return
        try:
            if collection.count() == 0:
                return
            sample = collection.peek(limit=1)
            embeddings = sample.get("embeddings") if sample else None
            if embeddings is None or len(embeddings) == 0:
                return
            stored_dim = len(embeddings[0])
        except Exception as exc:
            logger.warning("embedding_dimension_check_skipped", namespace=namespace, error=str(exc))
            return

        if stored_dim != self._expected_dimension:
            logger.error(
                "embedding_dimension_mismatch",
                namespace=namespace,
                stored_dim=stored_dim,
                expected_dim=self._expected_dimension,
            )
            raise ConfigurationError(
                message=(
                    f"Embedding dimension mismatch: namespace '{namespace}' holds "
                    f"{stored_dim}-dim vectors but the embedding model produces "
                    f"{self._expected_dimension}-dim vectors."
                ),
                provider_name=self.get_provider_name(),
            )

    @staticmethod
    def _to_chroma_metadata(metadata: dict[str, Any]) -> dict[str, str | int | float | bool]:
        """Convert record metadata to a ChromaDB-compatible dict.

        ChromaDB metadata values must be str, int, float, or bool.
        Lists are serialized as comma-separated strings and ``None``
        values are dropped.
        """
        converted: dict[str, str | int | float | bool] = {}
        for key, value in metadata.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                converted[key] = ",".join(str(v) for v in value)
            elif isinstance(value, (str, int, float, bool)):
                converted[key] = value
            else:
                converted[key] = str(value)
        return converted
