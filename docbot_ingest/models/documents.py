"""Document-level models: extracted page blocks, document types, manifest entries.

A document moves through the pipeline as an ordered list of
:class:`PageBlock` objects (order defines document position).  The
classifier derives one :class:`EffectiveDocType` per ingestion run; only
its lowered projection (:attr:`EffectiveDocType.manifest_type`) is ever
persisted, in the namespace manifest as a :class:`DocumentManifestEntry`.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class PageBlock(BaseModel):
    """A window of extracted text covering pages ``page_start``..``page_end``."""

    model_config = ConfigDict(frozen=True)

    text: str
    page_start: int = Field(ge=1)
    page_end: int = Field(ge=1)


class DocumentTypeHint(str, Enum):
    """Optional caller-supplied hint that short-circuits classification."""

    FAQ = "faq"
    GLOSSARY = "glossary"
    MANUAL = "manual"


class EffectiveDocType(str, Enum):
    """Structural type that selects the chunking strategy."""

    FAQ_QA = "faq_qa"
    FAQ_GLOSSARY = "faq_glossary"
    GLOSSARY = "glossary"
    MANUAL = "manual"
    STANDARD = "standard"

    @property
    def manifest_type(self) -> str:
        """The ``faq|glossary|manual|standard`` value stored in the manifest."""
        if self in (EffectiveDocType.FAQ_QA, EffectiveDocType.FAQ_GLOSSARY):
            return "faq"
        return self.value

    @property
    def strategy(self) -> str:
        """Name of the chunking strategy family for this type."""
        if self is EffectiveDocType.FAQ_QA:
            return "faq"
        if self in (EffectiveDocType.GLOSSARY, EffectiveDocType.FAQ_GLOSSARY):
            return "glossary"
        return self.value


class DocumentManifestEntry(BaseModel):
    """One ingested document within a namespace manifest.

    Serialised with camelCase keys (``objectKey``, ``contentHash``, ...)
    so the manifest JSON stays readable by the dashboard that lists it.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    source: str
    object_key: str
    created_at: str
    namespace: str
    content_hash: str | None = None
    document_type: str | None = None
    chunk_count: int | None = Field(default=None, ge=0)


class UploadResult(BaseModel):
    """Outcome of storing a source file in object storage."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    file_key: str
    content_hash: str
    file_name: str
    already_exists: bool = False


class DocumentPage(BaseModel):
    """One page of a namespace's manifest listing."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    documents: list[DocumentManifestEntry] = Field(default_factory=list)
    page: int = 1
    per_page: int = 10
    total: int = 0
    total_pages: int = 0
