"""Glossary / heading-paragraph pairer.

Joins all blocks, scans line by line and starts a new term at every
heading line.  Body lines accumulate under the current term until the next
heading; content before the first heading (cover pages, tables of contents)
is discarded.

A line is a heading when it is shorter than ``max_heading_length``, has no
terminal punctuation, does not start with ``Page `` or ``http``, starts
with a letter or digit, carries no URL and is not a list item.  It must
also follow a blank line, a sentence end or a line carrying a link, so
that PDF lines wrapped mid-sentence stay in the body.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

import structlog

from docbot_ingest.config.chunking import HeadingRules, StrategyProfile
from docbot_ingest.models.chunks import SmartChunk, SmartChunkType
from docbot_ingest.models.documents import PageBlock
from docbot_ingest.services.chunking.merge import (
    build_smart_chunk,
    dedupe_by_hash,
    merge_short_chunks,
)
from docbot_ingest.services.chunking.semantic_chunker import SemanticChunker
from docbot_ingest.services.chunking.text_utils import LIST_LINE_RE, URL_RE

logger = structlog.get_logger(logger_name=__name__)

_TERMINAL_PUNCTUATION = ".!?;:,"
_SENTENCE_END = ".!?"
_EXCESS_BLANKS_RE = re.compile(r"\n{3,}")


def is_heading(line: str, rules: HeadingRules | None = None) -> bool:
    """Lexical heading test for a single line, ignoring its neighbours."""
    rules = rules or HeadingRules()
    stripped = line.strip()
    if not stripped or len(stripped) >= rules.max_heading_length:
        return False
    if stripped[-1] in _TERMINAL_PUNCTUATION:
        return False
    if stripped.startswith("Page ") or stripped.lower().startswith("http"):
        return False
    if not stripped[0].isalnum():
        return False
    if URL_RE.search(stripped) or LIST_LINE_RE.match(stripped):
        return False
    return True


def _may_start_term(previous: str | None) -> bool:
    if previous is None:
        return True
    previous = previous.strip()
    return (
        not previous
        or previous[-1] in _SENTENCE_END
        or bool(URL_RE.search(previous))
    )


class GlossaryChunker:
    """Pairs each detected heading with the paragraphs that follow it."""

    def __init__(self, profile: StrategyProfile, rules: HeadingRules | None = None) -> None:
        self._profile = profile
        self._rules = rules or HeadingRules()
        self._splitter = SemanticChunker(profile)

    def chunk(self, blocks: list[PageBlock]) -> list[SmartChunk]:
        raw: list[SmartChunk] = []
        term: str | None = None
        body: list[str] = []
        page_start = page_end = 1
        previous: str | None = None
        preamble_lines = 0

        for line, block in self._lines(blocks):
            if is_heading(line, self._rules) and _may_start_term(previous):
                if term is not None:
                    raw.extend(self._flush(term, body, page_start, page_end))
                term = line.strip()
                body = []
                page_start = page_end = block.page_start
            elif term is None:
                if line.strip():
                    preamble_lines += 1
            else:
                body.append(line.rstrip())
                if line.strip():
                    page_end = block.page_end
            previous = line

        if term is not None:
            raw.extend(self._flush(term, body, page_start, page_end))

        merged = merge_short_chunks(
            raw, self._profile.min_chunk_size, self._profile.max_chunk_size
        )
        chunks = dedupe_by_hash(merged)
        logger.info(
            "glossary_chunking_complete",
            terms=len(raw),
            chunks=len(chunks),
            preamble_lines_dropped=preamble_lines,
        )
        return chunks

    @staticmethod
    def _lines(blocks: list[PageBlock]) -> Iterator[tuple[str, PageBlock]]:
        for block in blocks:
            for line in block.text.splitlines():
                yield line, block
            # Block boundaries act as blank lines.
            yield "", block

    def _flush(self, term: str, body: list[str], page_start: int, page_end: int) -> list[SmartChunk]:
        text = _EXCESS_BLANKS_RE.sub("\n\n", f"{term}\n" + "\n".join(body)).strip()
        if len(text) <= self._profile.max_chunk_size:
            parts = [text]
        else:
            parts = self._splitter.split_text(text)
        return [
            build_smart_chunk(
                part,
                page_start=page_start,
                page_end=page_end,
                chunk_type=SmartChunkType.PARAGRAPH,
                section_title=term,
                term=term,
            )
            for part in parts
        ]
