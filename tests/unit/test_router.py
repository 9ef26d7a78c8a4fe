"""Unit tests for the chunk router and its standard fallback."""

from __future__ import annotations

from docbot_ingest.config.chunking import ChunkingConfig
from docbot_ingest.models.chunks import FAQChunk, SmartChunk
from docbot_ingest.models.documents import EffectiveDocType, PageBlock
from docbot_ingest.services.chunking.router import ChunkRouter

_PROSE = (
    "Employees may request flexible hours after completing probation. "
    "Requests are reviewed by the line manager within ten working days. "
) * 4


def _blocks(text: str) -> list[PageBlock]:
    return [PageBlock(text=text, page_start=1, page_end=1)]


class TestChunkRouter:
    def test_faq_routes_to_faq_chunker(self) -> None:
        text = "Question: What is X?\nAnswer: X is Y.\n\nQuestion: What is Z?\nAnswer: Z is W."
        result = ChunkRouter().route(_blocks(text), EffectiveDocType.FAQ_QA)
        assert result.document_type is EffectiveDocType.FAQ_QA
        assert result.strategy == "faq"
        assert all(isinstance(c, FAQChunk) for c in result.chunks)
        assert len(result) == 2

    def test_faq_glossary_routes_to_glossary_chunker(self) -> None:
        text = "Term One\nDefinition text.\n\nRelated policy: https://x.test/a"
        result = ChunkRouter().route(_blocks(text), EffectiveDocType.FAQ_GLOSSARY)
        assert result.document_type is EffectiveDocType.FAQ_GLOSSARY
        assert result.strategy == "glossary"
        assert result.chunks[0].term == "Term One"

    def test_manual_and_standard_produce_smart_chunks(self) -> None:
        for doc_type in (EffectiveDocType.MANUAL, EffectiveDocType.STANDARD):
            result = ChunkRouter().route(_blocks(_PROSE), doc_type)
            assert result.document_type is doc_type
            assert all(isinstance(c, SmartChunk) for c in result.chunks)

    def test_faq_without_pairs_falls_back_to_standard(self) -> None:
        result = ChunkRouter().route(_blocks(_PROSE), EffectiveDocType.FAQ_QA)
        assert result.document_type is EffectiveDocType.STANDARD
        assert len(result) == 1

    def test_glossary_without_headings_falls_back_to_standard(self) -> None:
        result = ChunkRouter().route(_blocks(_PROSE), EffectiveDocType.GLOSSARY)
        assert result.document_type is EffectiveDocType.STANDARD
        assert len(result) == 1

    def test_namespace_overrides_apply(self) -> None:
        config = ChunkingConfig(namespaces={"tiny": {"standard": {"max_chunk_size": 300, "target_chunk_size": 200, "overlap": 0, "min_chunk_size": 50}}})
        router = ChunkRouter(config)
        default = router.route(_blocks(_PROSE), EffectiveDocType.STANDARD)
        narrow = router.route(_blocks(_PROSE), EffectiveDocType.STANDARD, namespace="tiny")
        assert len(default) == 1
        assert len(narrow) > 1
        assert all(len(c.text) <= 300 for c in narrow.chunks)
