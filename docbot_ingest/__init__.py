"""docbot-ingest: adaptive chunking and embedding ingestion for office documents.

Ingests PDF/DOCX files into namespaced vector collections:
**extract -> classify -> chunk -> build metadata -> embed -> upsert -> manifest**.
"""

__version__ = "0.1.0"
