"""Shared pytest fixtures for the docbot-ingest test suite."""

from __future__ import annotations

import hashlib
import io
from pathlib import Path

import docx
import fitz
import pytest

from docbot_ingest.interfaces.embedding_provider import IEmbeddingProvider
from docbot_ingest.interfaces.object_store_provider import IObjectStoreProvider
from docbot_ingest.interfaces.vector_store_provider import IVectorStoreProvider
from docbot_ingest.models.ingestion import QueryMatch, VectorRecord
from docbot_ingest.services.manifest_service import ManifestService

EMBEDDING_DIMENSION = 8


# ---------------------------------------------------------------------------
# In-memory providers
# ---------------------------------------------------------------------------


class InMemoryObjectStore(IObjectStoreProvider):
    """Dict-backed object store that records deletions."""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.content_types: dict[str, str] = {}
        self.deleted: list[str] = []
        self.put_calls = 0

    async def get_object(self, key: str) -> bytes | None:
        return self.objects.get(key)

    async def put_object(
        self, key: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> None:
        self.put_calls += 1
        self.objects[key] = data
        self.content_types[key] = content_type

    async def delete_object(self, key: str) -> None:
        self.deleted.append(key)
        self.objects.pop(key, None)

    async def exists(self, key: str) -> bool:
        return key in self.objects

    def get_provider_name(self) -> str:
        return "memory"


class FakeEmbeddingProvider(IEmbeddingProvider):
    """Deterministic embeddings derived from a SHA-256 of the input text."""

    def __init__(self, dimension: int = EMBEDDING_DIMENSION) -> None:
        self._dimension = dimension
        self.embedded_texts: list[str] = []
        self.calls = 0

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls += 1
        self.embedded_texts.extend(texts)
        return [self.vector_for(text) for text in texts]

    async def embed_single(self, text: str) -> list[float]:
        return (await self.embed([text]))[0]

    def vector_for(self, text: str) -> list[float]:
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return [digest[i] / 255.0 for i in range(self._dimension)]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return "fake-embedding"

    def is_available(self) -> bool:
        return True


class FakeVectorStore(IVectorStoreProvider):
    """Per-namespace dict of records keyed by id; upserts overwrite."""

    def __init__(self) -> None:
        self.records: dict[str, dict[str, VectorRecord]] = {}
        self.upserted_ids: list[str] = []
        self.upsert_calls = 0

    async def upsert(self, namespace: str, records: list[VectorRecord]) -> int:
        self.upsert_calls += 1
        bucket = self.records.setdefault(namespace, {})
        for record in records:
            bucket[record.id] = record
            self.upserted_ids.append(record.id)
        return len(records)

    async def query(
        self,
        namespace: str,
        vector: list[float],
        top_k: int = 5,
        include_metadata: bool = True,
    ) -> list[QueryMatch]:
        scored = [
            (sum(a * b for a, b in zip(vector, record.values)), record)
            for record in self.records.get(namespace, {}).values()
        ]
        scored.sort(key=lambda item: item[0], reverse=True)
        return [
            QueryMatch(
                id=record.id,
                score=score,
                metadata=record.metadata if include_metadata else None,
            )
            for score, record in scored[:top_k]
        ]

    async def delete_by_source(self, namespace: str, object_key: str) -> int:
        bucket = self.records.get(namespace, {})
        doomed = [rid for rid, r in bucket.items() if r.metadata.get("objectKey") == object_key]
        for rid in doomed:
            del bucket[rid]
        return len(doomed)

    def get_provider_name(self) -> str:
        return "fake-vector-store"

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Document builders
# ---------------------------------------------------------------------------


def make_docx(paragraphs: list[str], table: list[list[str]] | None = None) -> bytes:
    """Build a DOCX file in memory with python-docx."""
    document = docx.Document()
    for text in paragraphs:
        document.add_paragraph(text)
    if table:
        grid = document.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                grid.cell(r, c).text = value
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def make_pdf(pages: list[str]) -> bytes:
    """Build a PDF with one text line per page using PyMuPDF."""
    document = fitz.open()
    for text in pages:
        page = document.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = document.tobytes()
    document.close()
    return data


def faq_paragraphs(count: int) -> list[str]:
    """``count`` well-formed Question/Answer pairs as DOCX paragraphs."""
    paragraphs: list[str] = []
    for i in range(count):
        paragraphs.append(f"Question: How do I request benefit number {i}?")
        paragraphs.append(f"Answer: Submit form {i} to the benefits office before Friday.")
    return paragraphs


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def vector_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture
def manifest_service(object_store: InMemoryObjectStore) -> ManifestService:
    return ManifestService(object_store)


@pytest.fixture
def no_sleep():
    """Replacement for ``asyncio.sleep`` that records requested delays."""
    delays: list[float] = []

    async def _sleep(delay: float) -> None:
        delays.append(delay)

    _sleep.delays = delays  # type: ignore[attr-defined]
    return _sleep


@pytest.fixture
def docx_bytes():
    """Factory fixture wrapping :func:`make_docx`."""
    return make_docx


@pytest.fixture
def pdf_bytes():
    """Factory fixture wrapping :func:`make_pdf`."""
    return make_pdf


@pytest.fixture
def faq_docx():
    """Factory: a DOCX holding ``count`` Question/Answer pairs."""

    def _build(count: int) -> bytes:
        return make_docx(faq_paragraphs(count))

    return _build
