"""Vector store provider implementations."""

from docbot_ingest.providers.vector_store.chromadb_provider import ChromaDBProvider

__all__ = ["ChromaDBProvider"]
