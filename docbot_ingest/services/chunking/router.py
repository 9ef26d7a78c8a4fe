"""Chunk router: dispatches page blocks to the strategy for the document type.

============  ==========================================
Type          Strategy
============  ==========================================
faq_qa        :class:`FAQChunker`
faq_glossary  :class:`GlossaryChunker` (glossary profile)
glossary      :class:`GlossaryChunker` (glossary profile)
manual        :class:`SemanticChunker` (manual profile)
standard      :class:`SemanticChunker` (standard profile)
============  ==========================================

When the FAQ or glossary strategy finds no pairs/headings at all, the
document is re-chunked as ``standard`` and the result is labelled
``standard``.  The label travels back to the caller in continuation
responses, so later invocations route straight to the same chunker.
"""

from __future__ import annotations

import structlog

from docbot_ingest.config.chunking import ChunkingConfig
from docbot_ingest.models.chunks import ChunkResult
from docbot_ingest.models.documents import EffectiveDocType, PageBlock
from docbot_ingest.services.chunking.faq_chunker import FAQChunker
from docbot_ingest.services.chunking.glossary_chunker import GlossaryChunker
from docbot_ingest.services.chunking.semantic_chunker import SemanticChunker

logger = structlog.get_logger(logger_name=__name__)


class ChunkRouter:
    """Chooses and runs a chunking strategy."""

    def __init__(self, config: ChunkingConfig | None = None) -> None:
        self._config = config or ChunkingConfig()

    def route(
        self,
        blocks: list[PageBlock],
        doc_type: EffectiveDocType,
        namespace: str | None = None,
    ) -> ChunkResult:
        """Chunk *blocks* as *doc_type* using *namespace*'s tunables."""
        config = self._config.for_namespace(namespace)

        if doc_type is EffectiveDocType.FAQ_QA:
            chunks = FAQChunker(config.faq.min_chunk_size).chunk(blocks)
        elif doc_type in (EffectiveDocType.GLOSSARY, EffectiveDocType.FAQ_GLOSSARY):
            chunks = GlossaryChunker(config.glossary, config.headings).chunk(blocks)
        elif doc_type is EffectiveDocType.MANUAL:
            chunks = SemanticChunker(config.manual).chunk(blocks)
        else:
            chunks = SemanticChunker(config.standard).chunk(blocks)

        if not chunks and doc_type not in (EffectiveDocType.MANUAL, EffectiveDocType.STANDARD):
            logger.warning(
                "chunk_strategy_fallback",
                requested=doc_type.value,
                fallback=EffectiveDocType.STANDARD.value,
            )
            return self.route(blocks, EffectiveDocType.STANDARD, namespace)

        result = ChunkResult(document_type=doc_type, chunks=chunks)
        logger.info(
            "chunks_routed",
            document_type=doc_type.value,
            strategy=result.strategy,
            chunk_count=len(result),
        )
        return result
