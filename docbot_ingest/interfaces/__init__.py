"""Abstract provider interfaces."""

from docbot_ingest.interfaces.embedding_provider import IEmbeddingProvider
from docbot_ingest.interfaces.object_store_provider import IObjectStoreProvider
from docbot_ingest.interfaces.vector_store_provider import IVectorStoreProvider

__all__ = ["IEmbeddingProvider", "IObjectStoreProvider", "IVectorStoreProvider"]
