"""Embedding provider implementations.

Embeddings convert chunk text into numeric vectors that capture semantic
meaning; they are upserted into the vector store and used for similarity
search.
"""

from docbot_ingest.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider"]
