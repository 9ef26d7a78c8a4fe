"""Abstract base class for vector-store service providers.

Defines the contract for storing, querying, and removing embedded chunk
records.  Records are partitioned by *namespace*; a namespace maps to a
collection (ChromaDB) or a namespace (Pinecone-style stores).
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docbot_ingest.models.ingestion import QueryMatch, VectorRecord


# Concrete implementation: ChromaDBProvider (docbot_ingest/providers/vector_store/)
class IVectorStoreProvider(ABC):
    """Contract for vector-store services used by the ingestion pipeline.

    All methods that touch the store are async so network-backed stores do
    not block the event loop.  Upserts are keyed by record id; writing the
    same id twice overwrites the earlier record.
    """

    @abstractmethod
    async def upsert(self, namespace: str, records: list[VectorRecord]) -> int:
        """Insert or overwrite *records* in *namespace*.

        Parameters
        ----------
        namespace:
            Target partition.
        records:
            Records to write.  Every ``values`` list must have the same
            dimension as the vectors already in the namespace.

        Returns
        -------
        int
            The number of records written.

        Raises
        ------
        docbot_ingest.utils.errors.TransientExternalError
            If the store operation fails.
        """

    @abstractmethod
    async def query(
        self,
        namespace: str,
        vector: list[float],
        top_k: int = 5,
        include_metadata: bool = True,
    ) -> list[QueryMatch]:
        """Return the *top_k* records nearest to *vector*, best first.

        Scores are similarities in ``[0, 1]`` (higher is closer).
        """

    @abstractmethod
    async def delete_by_source(self, namespace: str, object_key: str) -> int:
        """Delete every record whose ``objectKey`` metadata equals *object_key*.

        Returns
        -------
        int
            The number of records deleted.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is reachable."""
