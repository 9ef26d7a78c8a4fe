"""SmartChunk construction plus the short-chunk merge and dedup policies.

Short-chunk policy, applied by every SmartChunk strategy:

* a URL-only fragment merges into the previous chunk whatever its length;
* a chunk under ``min_size`` merges into the previous chunk when the result
  stays within ``max_size``, otherwise into the next chunk when that fits,
  otherwise into the previous chunk anyway;
* with no previous chunk it merges into the next one;
* a document's only chunk is always kept.
"""

from __future__ import annotations

from docbot_ingest.models.chunks import SmartChunk, SmartChunkType
from docbot_ingest.services.chunking.text_utils import (
    content_hash,
    extract_keywords,
    extract_links,
    has_list,
    has_table,
    is_url_only,
)

_JOINER = "\n\n"


def build_smart_chunk(
    text: str,
    page_start: int,
    page_end: int,
    chunk_type: SmartChunkType = SmartChunkType.STANDARD,
    section_title: str | None = None,
    term: str | None = None,
) -> SmartChunk:
    text = text.strip()
    return SmartChunk(
        text=text,
        page_start=page_start,
        page_end=max(page_start, page_end),
        hash=content_hash(text),
        chunk_type=chunk_type,
        section_title=section_title,
        links=extract_links(text),
        keywords=extract_keywords(text),
        has_list=has_list(text),
        has_table=has_table(text),
        term=term,
    )


def combine(first: SmartChunk, second: SmartChunk) -> SmartChunk:
    """Concatenate two chunks; titles and type come from *first* when set."""
    return build_smart_chunk(
        f"{first.text}{_JOINER}{second.text}",
        page_start=min(first.page_start, second.page_start),
        page_end=max(first.page_end, second.page_end),
        chunk_type=first.chunk_type,
        section_title=first.section_title or second.section_title,
        term=first.term or second.term,
    )


def _fits(a: SmartChunk, b: SmartChunk, max_size: int) -> bool:
    return len(a.text) + len(_JOINER) + len(b.text) <= max_size


def merge_short_chunks(chunks: list[SmartChunk], min_size: int, max_size: int) -> list[SmartChunk]:
    """Apply the short-chunk policy to an ordered chunk list."""
    if len(chunks) <= 1:
        return list(chunks)

    merged: list[SmartChunk] = []
    pending: SmartChunk | None = None

    for index, original in enumerate(chunks):
        chunk = combine(pending, original) if pending is not None else original
        pending = None
        following = chunks[index + 1] if index + 1 < len(chunks) else None

        if is_url_only(chunk.text) and merged:
            merged[-1] = combine(merged[-1], chunk)
            continue
        if len(chunk.text) >= min_size:
            merged.append(chunk)
            continue

        if merged and _fits(merged[-1], chunk, max_size):
            merged[-1] = combine(merged[-1], chunk)
        elif following is not None and _fits(chunk, following, max_size):
            pending = chunk
        elif merged:
            merged[-1] = combine(merged[-1], chunk)
        elif following is not None:
            pending = chunk
        else:
            merged.append(chunk)

    return merged


def dedupe_by_hash(chunks: list[SmartChunk]) -> list[SmartChunk]:
    """Keep the first chunk for each content hash."""
    seen: set[str] = set()
    unique: list[SmartChunk] = []
    for chunk in chunks:
        if chunk.hash in seen:
            continue
        seen.add(chunk.hash)
        unique.append(chunk)
    return unique
