"""FAQ pairer: one chunk per question/answer pair.

Pairs are extracted with three ranked pattern families:

1. ``Question: ... Answer: ...`` labels,
2. ``Q: ... A: ...`` labels,
3. a fallback that splits the text on ``Question:`` and takes the first
   line (or first ``?``-terminated sentence) of each part as the question.

The first structured family with more than one match wins; otherwise the
split fallback is used.  Long answers are never split, so every chunk is a
``complete_faq``.  Only the question is embedded (see
:attr:`~docbot_ingest.models.chunks.FAQChunk.embedding_text`).
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import structlog

from docbot_ingest.models.chunks import FAQChunk, FAQChunkType
from docbot_ingest.models.documents import PageBlock
from docbot_ingest.services.chunking.text_utils import extract_keywords, extract_links

logger = structlog.get_logger(logger_name=__name__)

_LABELLED_RE = re.compile(
    r"Question\s*:\s*(?P<q>(?:(?!\n\s*Question\s*:).)+?)"
    r"\s*Answer\s*:\s*(?P<a>.+?)(?=\n\s*Question\s*:|\Z)",
    re.IGNORECASE | re.DOTALL,
)
_SHORT_LABELLED_RE = re.compile(
    r"(?:^|\n)\s*Q\s*[:.]\s*(?P<q>(?:(?!\n\s*Q\s*[:.]).)+?)"
    r"\s*\n\s*A\s*[:.]\s*(?P<a>.+?)(?=\n\s*Q\s*[:.]|\Z)",
    re.DOTALL,
)
_SPLIT_RE = re.compile(r"Question\s*:", re.IGNORECASE)
_ANSWER_LABEL_RE = re.compile(r"^\s*Answer\s*:\s*", re.IGNORECASE)
_DETAILS_RE = re.compile(r"Details\s*:\s*(https?://\S+)", re.IGNORECASE)


def extract_pairs(text: str) -> list[tuple[str, str]]:
    """Return ``(question, answer)`` pairs using the highest-ranked family that fits."""
    fallback_single: list[tuple[str, str]] = []
    for family in (_LABELLED_RE, _SHORT_LABELLED_RE):
        pairs = _clean_pairs((m.group("q"), m.group("a")) for m in family.finditer(text))
        if len(pairs) > 1:
            return pairs
        if pairs and not fallback_single:
            fallback_single = pairs

    split_pairs = _split_fallback(text)
    if split_pairs:
        return split_pairs
    return fallback_single


def _split_fallback(text: str) -> list[tuple[str, str]]:
    parts = _SPLIT_RE.split(text)[1:]
    raw: list[tuple[str, str]] = []
    for part in parts:
        part = part.strip()
        if not part:
            continue
        first_line, _, rest = part.partition("\n")
        mark = first_line.find("?")
        if mark != -1 and mark < len(first_line) - 1:
            question = first_line[: mark + 1]
            answer = first_line[mark + 1 :] + ("\n" + rest if rest else "")
        else:
            question, answer = first_line, rest
        raw.append((question, _ANSWER_LABEL_RE.sub("", answer.strip())))
    return _clean_pairs(raw)


def _clean_pairs(pairs: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    cleaned: list[tuple[str, str]] = []
    for question, answer in pairs:
        question = " ".join(question.split())
        answer = answer.strip()
        if question and answer:
            cleaned.append((question, answer))
    return cleaned


class FAQChunker:
    """Turns question/answer documents into :class:`FAQChunk` objects."""

    def __init__(self, min_chunk_size: int = 10) -> None:
        self._min_chunk_size = min_chunk_size

    def chunk(self, blocks: list[PageBlock]) -> list[FAQChunk]:
        text = "\n\n".join(block.text for block in blocks)
        pairs = extract_pairs(text)

        chunks: list[FAQChunk] = []
        for question, answer in pairs:
            chunk_text = f"Question: {question}\nAnswer: {answer}"
            if len(chunk_text.strip()) < self._min_chunk_size:
                continue
            chunks.append(
                FAQChunk(
                    text=chunk_text,
                    question=question,
                    answer=answer,
                    links=extract_links(chunk_text),
                    details_links=[
                        link.rstrip(".,;:!?") for link in _DETAILS_RE.findall(answer)
                    ],
                    chunk_index=len(chunks),
                    chunk_type=FAQChunkType.COMPLETE_FAQ,
                    is_complete=True,
                    keywords=extract_keywords(f"{question} {answer}"),
                )
            )

        logger.info("faq_chunking_complete", pairs=len(pairs), chunks=len(chunks))
        return chunks
