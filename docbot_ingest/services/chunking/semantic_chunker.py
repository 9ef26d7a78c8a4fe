"""Manual/standard semantic chunker.

One engine serves both strategies; only the
:class:`~docbot_ingest.config.chunking.StrategyProfile` differs
(manual: 2000/1200/150/200, standard: 2500/1500/200/100 for
max/target/overlap/min).

For each :class:`PageBlock`:

1. Detect structure (header lines, list density, table markers).
2. With at least three header lines, split the block at its headers;
   otherwise treat the whole block as one pseudo-section.
3. Sections longer than ``max_chunk_size`` are split along blank-line
   paragraph boundaries into pieces of about ``target_chunk_size``.  Each
   new piece starts with an overlap carried from the previous one: a
   trailing link / list / lead-in paragraph when it fits in the overlap
   window, else the previous piece's tail starting at a sentence boundary.
   Paragraphs longer than the target are first broken at sentence
   boundaries.

Short pieces are then merged (see :mod:`.merge`) and the whole document
is deduplicated by content hash.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import structlog

from docbot_ingest.config.chunking import StrategyProfile
from docbot_ingest.models.chunks import SmartChunk, SmartChunkType
from docbot_ingest.models.documents import PageBlock
from docbot_ingest.services.chunking.merge import (
    build_smart_chunk,
    dedupe_by_hash,
    merge_short_chunks,
)
from docbot_ingest.services.chunking.text_utils import (
    LIST_LINE_RE,
    URL_RE,
    hard_wrap,
    has_table,
    split_paragraphs,
    split_sentences,
)

logger = structlog.get_logger(logger_name=__name__)

_HEADER_RE = re.compile(
    r"^(?:"
    r"#{1,6}\s+\S[^\n]*"                                              # markdown
    r"|(?:Chapter|Section|Article|Part|Appendix)\s+[\dIVXA-Z]+\b[^\n]{0,80}"
    r"|\d+(?:\.\d+)*\.?\s+[A-Z][^\n.!?]{1,80}"                        # 1.2 Title
    r"|[A-Z][A-Z0-9 &/,'()-]{3,80}"                                   # ALL CAPS
    r")\s*$",
    re.MULTILINE,
)
_MIN_HEADERS_FOR_SPLIT = 3
_LIST_DENSITY = 0.4
_SENTENCE_START_RE = re.compile(r"[.!?]\s+")


@dataclass(frozen=True)
class BlockStructure:
    """Regex counts describing one block's layout."""

    header_count: int
    list_lines: int
    total_lines: int
    has_table: bool

    @property
    def list_density(self) -> float:
        return self.list_lines / self.total_lines if self.total_lines else 0.0

    @property
    def is_structured(self) -> bool:
        # Numbered list items also match the header pattern.
        return self.header_count >= _MIN_HEADERS_FOR_SPLIT and self.list_density < _LIST_DENSITY


def detect_structure(text: str) -> BlockStructure:
    lines = [line for line in text.splitlines() if line.strip()]
    return BlockStructure(
        header_count=len(_HEADER_RE.findall(text)),
        list_lines=len(LIST_LINE_RE.findall(text)),
        total_lines=len(lines),
        has_table=has_table(text),
    )


def split_sections(text: str) -> list[tuple[str | None, str]]:
    """Split *text* at header lines into ``(title, body)`` pairs.

    Text before the first header becomes an untitled section.
    """
    sections: list[tuple[str | None, str]] = []
    matches = list(_HEADER_RE.finditer(text))
    if not matches:
        return [(None, text.strip())]

    preamble = text[: matches[0].start()].strip()
    if preamble:
        sections.append((None, preamble))
    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(text)
        title = match.group(0).strip().lstrip("#").strip()
        body = text[match.end() : end].strip()
        sections.append((title, body))
    return sections


class SemanticChunker:
    """Section- and paragraph-aware chunker for manuals and general documents."""

    def __init__(self, profile: StrategyProfile) -> None:
        self._profile = profile

    @property
    def profile(self) -> StrategyProfile:
        return self._profile

    def chunk(self, blocks: list[PageBlock]) -> list[SmartChunk]:
        pieces: list[SmartChunk] = []
        for block in blocks:
            if not block.text.strip():
                continue
            pieces.extend(self._chunk_block(block))

        merged = merge_short_chunks(
            pieces, self._profile.min_chunk_size, self._profile.max_chunk_size
        )
        unique = dedupe_by_hash(merged)
        logger.info(
            "semantic_chunking_complete",
            blocks=len(blocks),
            raw_chunks=len(pieces),
            merged_chunks=len(merged),
            chunks=len(unique),
        )
        return unique

    # ------------------------------------------------------------------
    # Per-block processing
    # ------------------------------------------------------------------

    def _chunk_block(self, block: PageBlock) -> list[SmartChunk]:
        structure = detect_structure(block.text)
        sections = (
            split_sections(block.text) if structure.is_structured else [(None, block.text.strip())]
        )

        chunks: list[SmartChunk] = []
        for title, body in sections:
            section_text = f"{title}\n{body}".strip() if title else body
            if not section_text:
                continue
            if len(section_text) <= self._profile.max_chunk_size:
                parts = [section_text]
            else:
                parts = self.split_text(section_text)
            was_split = len(parts) > 1
            for part in parts:
                chunks.append(
                    build_smart_chunk(
                        part,
                        page_start=block.page_start,
                        page_end=block.page_end,
                        chunk_type=self._chunk_type(part, title, was_split),
                        section_title=title,
                    )
                )
        return chunks

    @staticmethod
    def _chunk_type(text: str, title: str | None, was_split: bool) -> SmartChunkType:
        if title:
            return SmartChunkType.SECTION
        if detect_structure(text).list_density >= _LIST_DENSITY:
            return SmartChunkType.LIST
        if was_split:
            return SmartChunkType.PARAGRAPH
        return SmartChunkType.STANDARD

    # ------------------------------------------------------------------
    # Paragraph splitting with overlap
    # ------------------------------------------------------------------

    def split_text(self, text: str) -> list[str]:
        """Split *text* into overlapping pieces of about ``target_chunk_size``.

        Every returned piece is at most ``target_chunk_size + overlap + 2``
        characters, which the profile guarantees is below ``max_chunk_size``.
        """
        target = self._profile.target_chunk_size
        units = self._paragraph_units(text)

        pieces: list[str] = []
        current: list[str] = []
        # Units added since the last flush; a carried overlap alone is never a piece.
        fresh = 0
        for unit in units:
            if fresh and len("\n\n".join([*current, unit])) > target:
                pieces.append("\n\n".join(current))
                carry = self._overlap_from(current)
                current = [carry] if carry else []
                fresh = 0
            current.append(unit)
            fresh += 1

        if current:
            pieces.append("\n\n".join(current))
        return pieces

    def _paragraph_units(self, text: str) -> list[str]:
        """Paragraphs no longer than the target; longer ones broken by sentence."""
        target = self._profile.target_chunk_size
        units: list[str] = []
        for paragraph in split_paragraphs(text):
            if len(paragraph) <= target:
                units.append(paragraph)
                continue
            buffer = ""
            for sentence in split_sentences(paragraph):
                for fragment in hard_wrap(sentence, target) if len(sentence) > target else [sentence]:
                    candidate = f"{buffer} {fragment}" if buffer else fragment
                    if len(candidate) > target and buffer:
                        units.append(buffer)
                        buffer = fragment
                    else:
                        buffer = candidate
            if buffer:
                units.append(buffer)
        return units

    def _overlap_from(self, parts: list[str]) -> str | None:
        """Context carried into the next piece, or ``None``."""
        overlap = self._profile.overlap
        if overlap <= 0 or not parts:
            return None

        last = parts[-1].strip()
        if len(last) <= overlap and (
            URL_RE.search(last) or LIST_LINE_RE.search(last) or last.endswith(":")
        ):
            return last

        joined = "\n\n".join(parts)
        if len(joined) <= overlap:
            # The whole previous piece would repeat verbatim.
            return None

        window = joined[-overlap:]
        boundary = _SENTENCE_START_RE.search(window)
        if boundary:
            tail = window[boundary.end() :]
        else:
            space = window.find(" ")
            tail = window[space + 1 :] if space != -1 else window
        tail = tail.strip()
        return tail or None
