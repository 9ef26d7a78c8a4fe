"""Chunk models produced by the chunking strategies.

Two concrete chunk shapes share one role and are modelled as a tagged
union on ``kind``:

* :class:`FAQChunk` (``kind="faq"``) -- one question/answer pair.  Only the
  question is embedded; the answer and links travel in metadata.
* :class:`SmartChunk` (``kind="standard"``) -- a section, paragraph group,
  list or glossary term with its page range and content hash.

The router and metadata builder consume chunks through :class:`ChunkResult`
and branch on ``kind``, so adding a third shape is a type error until
every consumer handles it.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from docbot_ingest.models.documents import EffectiveDocType


class FAQChunkType(str, Enum):
    FAQ_PAIR = "faq_pair"
    COMPLETE_FAQ = "complete_faq"
    PARTIAL_FAQ = "partial_faq"


class SmartChunkType(str, Enum):
    SECTION = "section"
    PARAGRAPH = "paragraph"
    LIST = "list"
    STANDARD = "standard"


class FAQChunk(BaseModel):
    """A question/answer pair extracted from an FAQ document."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["faq"] = "faq"
    text: str
    question: str
    answer: str
    links: list[str] = Field(default_factory=list)
    details_links: list[str] = Field(default_factory=list)
    chunk_index: int = Field(ge=0)
    chunk_type: FAQChunkType = FAQChunkType.COMPLETE_FAQ
    is_complete: bool = True
    keywords: list[str] = Field(default_factory=list)
    part_index: int | None = None
    original_question: str | None = None

    @property
    def embedding_text(self) -> str:
        # Question phrasing is what users search with.
        return self.question

    @property
    def identity(self) -> str:
        return self.text


class SmartChunk(BaseModel):
    """A structural chunk from the glossary or semantic chunkers."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["standard"] = "standard"
    text: str
    page_start: int = Field(ge=1)
    page_end: int = Field(ge=1)
    hash: str
    chunk_type: SmartChunkType = SmartChunkType.STANDARD
    section_title: str | None = None
    links: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    has_list: bool = False
    has_table: bool = False
    term: str | None = None

    @property
    def embedding_text(self) -> str:
        return self.text

    @property
    def identity(self) -> str:
        return self.hash


Chunk = Annotated[Union[FAQChunk, SmartChunk], Field(discriminator="kind")]


class ChunkResult(BaseModel):
    """Uniform output of every chunking strategy."""

    model_config = ConfigDict(frozen=True)

    document_type: EffectiveDocType
    chunks: list[Chunk] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.chunks)

    @property
    def strategy(self) -> str:
        """Name of the strategy family that produced the chunks."""
        return self.document_type.strategy
