"""Command-line tools for docbot-ingest.

- ``python -m docbot_ingest.cli.ingest`` -- upload and process documents,
  preview classification and chunking, list and delete documents.
"""
