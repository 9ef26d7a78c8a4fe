"""Page-block extractor: raw PDF / DOCX bytes -> ordered :class:`PageBlock` list.

PDFs are read with PyMuPDF (fitz) page by page and grouped into windows of
``pages_per_block`` pages (5 by default).  DOCX files have no reliable page
boundaries, so paragraph and table text becomes a single block covering
page 1.

Raises :class:`~docbot_ingest.utils.errors.ExtractionError` for unsupported
extensions, unreadable files and files without any text.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import PurePosixPath

import docx
import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from docbot_ingest.models.documents import PageBlock
from docbot_ingest.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

PAGES_PER_BLOCK = 5

CONTENT_TYPES: dict[str, str] = {
    ".pdf": "application/pdf",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}


@dataclass(frozen=True)
class ExtractedDocument:
    """Page blocks plus the document's total page count."""

    blocks: list[PageBlock]
    total_pages: int

    @property
    def text(self) -> str:
        return "\n\n".join(block.text for block in self.blocks)


def file_extension(file_name: str) -> str:
    return PurePosixPath(file_name).suffix.lower()


def is_supported(file_name: str) -> bool:
    return file_extension(file_name) in CONTENT_TYPES


class PageExtractor:
    """Converts file bytes into page-tagged text blocks."""

    def __init__(self, pages_per_block: int = PAGES_PER_BLOCK) -> None:
        self._pages_per_block = max(1, pages_per_block)

    def extract(self, data: bytes, file_name: str) -> ExtractedDocument:
        extension = file_extension(file_name)
        if extension == ".pdf":
            document = self._extract_pdf(data)
        elif extension == ".docx":
            document = self._extract_docx(data)
        else:
            raise ExtractionError(
                message=f"Unsupported file type: {extension or file_name}",
                provider_name="extractor",
            )

        if not document.blocks:
            raise ExtractionError(
                message=f"No text could be extracted from {file_name}",
                provider_name="extractor",
            )

        logger.info(
            "document_extracted",
            file_name=file_name,
            total_pages=document.total_pages,
            blocks=len(document.blocks),
            chars=sum(len(b.text) for b in document.blocks),
        )
        return document

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _extract_pdf(self, data: bytes) -> ExtractedDocument:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise ExtractionError(
                message=f"Could not open PDF: {exc}",
                provider_name="extractor",
            ) from exc

        pages: list[str] = []
        try:
            for page in doc:
                pages.append(page.get_text("text").strip())
        finally:
            doc.close()

        blocks: list[PageBlock] = []
        for start in range(0, len(pages), self._pages_per_block):
            window = pages[start : start + self._pages_per_block]
            text = "\n\n".join(p for p in window if p)
            if not text.strip():
                continue
            blocks.append(
                PageBlock(text=text, page_start=start + 1, page_end=start + len(window))
            )
        return ExtractedDocument(blocks=blocks, total_pages=len(pages))

    @staticmethod
    def _extract_docx(data: bytes) -> ExtractedDocument:
        try:
            document = docx.Document(io.BytesIO(data))
        except Exception as exc:
            raise ExtractionError(
                message=f"Could not open DOCX: {exc}",
                provider_name="extractor",
            ) from exc

        parts = [para.text.strip() for para in document.paragraphs if para.text.strip()]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells]
                if any(cells):
                    parts.append(" | ".join(cells))

        text = "\n\n".join(parts)
        blocks = [PageBlock(text=text, page_start=1, page_end=1)] if text else []
        return ExtractedDocument(blocks=blocks, total_pages=1)
