"""Business-logic services: extraction, chunking, metadata, manifest and documents."""
