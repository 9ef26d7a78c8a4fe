"""Abstract base class for text-embedding service providers.

Defines the contract for generating embedding vectors from chunk text.
Implementations may wrap the OpenAI embeddings API or any other backend;
the orchestrator only depends on this interface, so providers are
interchangeable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation:
#   OpenAIEmbeddingProvider -- text-embedding-ada-002 by default (1536 dims)
# Located in: docbot_ingest/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by the ingestion pipeline.

    Embeddings are consumed by
    :class:`~docbot_ingest.interfaces.vector_store_provider.IVectorStoreProvider`
    for indexing and by the search endpoint for query embedding.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.  Each
            inner list has length equal to :meth:`get_dimension`.

        Raises
        ------
        docbot_ingest.utils.errors.TransientExternalError
            If the embedding API call fails in a way worth retrying.
        docbot_ingest.utils.errors.InputValidationError
            If the API rejects the input outright.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Convenience wrapper around :meth:`embed`, used for search queries.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Must match the dimension of every vector already stored in the
        target namespace.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai-text-embedding-ada-002"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credentials present)."""
