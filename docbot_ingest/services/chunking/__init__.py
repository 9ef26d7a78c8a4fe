"""Document classification and chunking strategies."""

from docbot_ingest.services.chunking.classifier import classify
from docbot_ingest.services.chunking.faq_chunker import FAQChunker
from docbot_ingest.services.chunking.glossary_chunker import GlossaryChunker
from docbot_ingest.services.chunking.router import ChunkRouter
from docbot_ingest.services.chunking.semantic_chunker import SemanticChunker

__all__ = ["ChunkRouter", "FAQChunker", "GlossaryChunker", "SemanticChunker", "classify"]
