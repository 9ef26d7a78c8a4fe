"""Unit tests for metadata building, vector ids and embedding inputs."""

from __future__ import annotations

import pytest

from docbot_ingest.models.chunks import FAQChunk
from docbot_ingest.models.documents import EffectiveDocType
from docbot_ingest.services.chunking.merge import build_smart_chunk
from docbot_ingest.services.metadata_builder import (
    TEXT_CAP,
    MetadataBuilder,
    embedding_input,
    vector_id,
)


def _faq(question: str = "Where is the form?", answer: str = "Download it here.") -> FAQChunk:
    return FAQChunk(
        text=f"Question: {question}\nAnswer: {answer}",
        question=question,
        answer=answer,
        chunk_index=0,
    )


def _build(chunk, doc_type: EffectiveDocType, index: int = 0) -> dict:
    return MetadataBuilder().build(
        chunk,
        index=index,
        file_name="handbook.pdf",
        object_key="hr/abc-handbook.pdf",
        namespace="hr",
        doc_type=doc_type,
    )


class TestFaqMetadata:
    def test_fields(self) -> None:
        metadata = _build(_faq(), EffectiveDocType.FAQ_QA)
        assert metadata["source"] == "handbook.pdf"
        assert metadata["objectKey"] == "hr/abc-handbook.pdf"
        assert metadata["namespace"] == "hr"
        assert metadata["documentType"] == "faq"
        assert metadata["effectiveDocType"] == "faq_qa"
        assert metadata["strategy"] == "faq"
        assert metadata["chunkType"] == "complete_faq"
        assert metadata["question"] == "Where is the form?"
        assert metadata["answer"] == "Download it here."
        assert metadata["isComplete"] is True
        assert "pageStart" not in metadata

    def test_confidence_for_complete_pair(self) -> None:
        metadata = _build(_faq(), EffectiveDocType.FAQ_QA)
        assert metadata["confidence"] == pytest.approx(0.9)
        assert metadata["confidenceLevel"] == "very_high"

    def test_long_answer_is_capped(self) -> None:
        answer = "This is a sentence of the answer. " * 100
        metadata = _build(_faq(answer=answer), EffectiveDocType.FAQ_QA)
        assert len(metadata["answer"]) <= 1500
        assert metadata["answer"].endswith(".")


class TestSmartChunkMetadata:
    def test_fields_and_contact_detection(self) -> None:
        chunk = build_smart_chunk("Email hr@example.com now.", 2, 3, section_title="Leave")
        metadata = _build(chunk, EffectiveDocType.STANDARD, index=7)
        assert metadata["chunkIndex"] == 7
        assert metadata["pageStart"] == 2
        assert metadata["pageEnd"] == 3
        assert metadata["hash"] == chunk.hash
        assert metadata["sectionTitle"] == "Leave"
        assert metadata["emails"] == ["hr@example.com"]
        assert metadata["hasContactInfo"] is True
        assert "question" not in metadata
        # base 0.7 + section title + contact info
        assert metadata["confidence"] == pytest.approx(0.8)
        assert metadata["confidenceLevel"] == "high"

    def test_glossary_term_and_links(self) -> None:
        chunk = build_smart_chunk(
            "Term One\nDefinition text.\n\nRelated policy: https://x.test/a",
            1,
            1,
            section_title="Term One",
            term="Term One",
        )
        metadata = _build(chunk, EffectiveDocType.FAQ_GLOSSARY)
        assert metadata["documentType"] == "faq"
        assert metadata["strategy"] == "glossary"
        assert metadata["term"] == "Term One"
        assert metadata["links"] == ["https://x.test/a"]
        assert metadata["websites"] == ["x.test"]

    def test_text_is_capped(self) -> None:
        chunk = build_smart_chunk("Long sentence for the cap test. " * 200, 1, 1)
        metadata = _build(chunk, EffectiveDocType.MANUAL)
        assert len(metadata["text"]) <= TEXT_CAP
        assert metadata["documentType"] == "manual"


class TestVectorIdAndEmbeddingInput:
    def test_vector_id_is_stable(self) -> None:
        chunk = _faq()
        assert vector_id("a.pdf", chunk, 3) == vector_id("a.pdf", chunk, 3)
        assert len(vector_id("a.pdf", chunk, 3)) == 64

    def test_vector_id_changes_with_position_and_file(self) -> None:
        chunk = _faq()
        ids = {vector_id("a.pdf", chunk, 0), vector_id("a.pdf", chunk, 1), vector_id("b.pdf", chunk, 0)}
        assert len(ids) == 3

    def test_faq_embeds_question_only(self) -> None:
        assert embedding_input(_faq(), 8000) == "Where is the form?"

    def test_smart_chunk_input_is_capped(self) -> None:
        chunk = build_smart_chunk("Words in a sentence. " * 1000, 1, 1)
        assert len(embedding_input(chunk, 8000)) <= 8000
