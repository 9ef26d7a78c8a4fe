"""Object store provider implementations."""

from docbot_ingest.providers.object_store.local_object_store import LocalObjectStore
from docbot_ingest.providers.object_store.s3_object_store import S3ObjectStore

__all__ = ["LocalObjectStore", "S3ObjectStore"]
