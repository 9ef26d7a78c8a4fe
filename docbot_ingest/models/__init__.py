"""docbot-ingest domain models -- re-exports all public model classes.

    - documents.py  -- page blocks, document types, manifest entries
    - chunks.py     -- FAQ / smart chunk tagged union and ChunkResult
    - ingestion.py  -- batch cursor, vector records, invocation request/outcome
"""

from __future__ import annotations

from docbot_ingest.models.chunks import (
    Chunk,
    ChunkResult,
    FAQChunk,
    FAQChunkType,
    SmartChunk,
    SmartChunkType,
)
from docbot_ingest.models.documents import (
    DocumentManifestEntry,
    DocumentPage,
    DocumentTypeHint,
    EffectiveDocType,
    PageBlock,
    UploadResult,
)
from docbot_ingest.models.ingestion import (
    BatchCursor,
    IngestionOutcome,
    IngestionPhase,
    IngestionRequest,
    QueryMatch,
    VectorRecord,
)

__all__ = [
    "BatchCursor",
    "Chunk",
    "ChunkResult",
    "DocumentManifestEntry",
    "DocumentPage",
    "DocumentTypeHint",
    "EffectiveDocType",
    "FAQChunk",
    "FAQChunkType",
    "IngestionOutcome",
    "IngestionPhase",
    "IngestionRequest",
    "PageBlock",
    "QueryMatch",
    "SmartChunk",
    "SmartChunkType",
    "UploadResult",
    "VectorRecord",
]
