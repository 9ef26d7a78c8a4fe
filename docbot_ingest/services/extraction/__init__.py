"""Text extraction from uploaded documents."""

from docbot_ingest.services.extraction.page_extractor import (
    ExtractedDocument,
    PageExtractor,
    is_supported,
)

__all__ = ["ExtractedDocument", "PageExtractor", "is_supported"]
