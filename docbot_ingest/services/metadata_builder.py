"""Metadata builder: chunk -> flat vector-database metadata record.

Every chunk, whatever strategy produced it, gets link/contact extraction,
keywords, structural flags and an additive confidence score.  Free-text
fields are truncated to fixed caps because vector databases limit the
metadata size of a single record; truncation ends at a sentence boundary
when one lies in the second half of the cap.

Also home to the two per-chunk helpers the orchestrator needs besides the
metadata: the deterministic record id and the capped embedding input.
"""

from __future__ import annotations

import hashlib
from typing import Any

from docbot_ingest.models.chunks import FAQChunk, SmartChunk
from docbot_ingest.models.documents import EffectiveDocType
from docbot_ingest.services.chunking.text_utils import (
    extract_emails,
    extract_keywords,
    extract_links,
    extract_phones,
    extract_websites,
    has_list,
    has_table,
    truncate_at_sentence,
)
from docbot_ingest.utils.confidence import additive_confidence, confidence_to_level

TEXT_CAP = 2000
QUESTION_CAP = 500
ANSWER_CAP = 1500
TITLE_CAP = 200

_BASE_CONFIDENCE: dict[str, float] = {
    "faq": 0.8,
    "glossary": 0.75,
    "manual": 0.75,
    "standard": 0.7,
}
_SIGNAL_BONUSES: dict[str, float] = {
    "has_section_title": 0.05,
    "has_links": 0.05,
    "has_contact_info": 0.05,
    "rich_keywords": 0.05,
    "complete_faq": 0.1,
}
_RICH_KEYWORD_COUNT = 5


def vector_id(file_name: str, chunk: FAQChunk | SmartChunk, index: int) -> str:
    """Stable record id: the same file, content and position give the same id."""
    digest = hashlib.sha256(f"{file_name}:{chunk.identity}:{index}".encode("utf-8"))
    return digest.hexdigest()


def embedding_input(chunk: FAQChunk | SmartChunk, max_chars: int) -> str:
    """Text submitted to the embedding service, capped at *max_chars*."""
    return truncate_at_sentence(chunk.embedding_text, max_chars, min_fraction=0.8)


class MetadataBuilder:
    """Builds metadata dicts for :class:`FAQChunk` and :class:`SmartChunk` records."""

    def build(
        self,
        chunk: FAQChunk | SmartChunk,
        *,
        index: int,
        file_name: str,
        object_key: str,
        namespace: str,
        doc_type: EffectiveDocType,
    ) -> dict[str, Any]:
        text = chunk.text
        links = extract_links(text)
        emails = extract_emails(text)
        phones = extract_phones(text)
        keywords = chunk.keywords or extract_keywords(text)
        strategy = doc_type.strategy

        metadata: dict[str, Any] = {
            "text": truncate_at_sentence(text, TEXT_CAP),
            "source": file_name,
            "objectKey": object_key,
            "namespace": namespace,
            "documentType": doc_type.manifest_type,
            "effectiveDocType": doc_type.value,
            "strategy": strategy,
            "chunkIndex": index,
            "chunkType": chunk.chunk_type.value,
            "links": links,
            "emails": emails,
            "phones": phones,
            "websites": extract_websites(text),
            "keywords": keywords,
            "hasList": has_list(text),
            "hasTable": has_table(text),
            "hasContactInfo": bool(emails or phones),
        }

        if isinstance(chunk, FAQChunk):
            metadata.update(
                {
                    "question": truncate_at_sentence(chunk.question, QUESTION_CAP),
                    "answer": truncate_at_sentence(chunk.answer, ANSWER_CAP),
                    "detailsLinks": chunk.details_links,
                    "isComplete": chunk.is_complete,
                    "faqIndex": chunk.chunk_index,
                }
            )
            if chunk.part_index is not None:
                metadata["partIndex"] = chunk.part_index
            if chunk.original_question:
                metadata["originalQuestion"] = truncate_at_sentence(
                    chunk.original_question, QUESTION_CAP
                )
            title = None
            complete = chunk.is_complete
        elif isinstance(chunk, SmartChunk):
            metadata.update(
                {
                    "pageStart": chunk.page_start,
                    "pageEnd": chunk.page_end,
                    "hash": chunk.hash,
                }
            )
            if chunk.section_title:
                metadata["sectionTitle"] = chunk.section_title[:TITLE_CAP]
            if chunk.term:
                metadata["term"] = chunk.term[:TITLE_CAP]
            title = chunk.section_title
            complete = False
        else:
            raise TypeError(f"Unsupported chunk type: {type(chunk).__name__}")

        score = additive_confidence(
            _BASE_CONFIDENCE[strategy],
            {
                "has_section_title": bool(title),
                "has_links": bool(links),
                "has_contact_info": bool(emails or phones),
                "rich_keywords": len(keywords) >= _RICH_KEYWORD_COUNT,
                "complete_faq": complete,
            },
            _SIGNAL_BONUSES,
        )
        metadata["confidence"] = score
        metadata["confidenceLevel"] = confidence_to_level(score).value
        return metadata

