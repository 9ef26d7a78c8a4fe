"""Abstract base class for object (blob) storage providers.

Source documents and the per-namespace manifest both live in object
storage.  Implementations wrap an S3-compatible bucket (AWS S3, Cloudflare
R2) or a local directory for development.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   S3ObjectStore    -- boto3 against S3 / R2
#   LocalObjectStore -- plain files under a root directory
# Located in: docbot_ingest/providers/object_store/
class IObjectStoreProvider(ABC):
    """Contract for byte-oriented key/value object storage."""

    @abstractmethod
    async def get_object(self, key: str) -> bytes | None:
        """Return the object's bytes, or ``None`` if *key* does not exist.

        Raises
        ------
        docbot_ingest.utils.errors.TransientExternalError
            On any failure other than a missing key.
        """

    @abstractmethod
    async def put_object(
        self, key: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> None:
        """Write *data* under *key*, replacing any existing object."""

    @abstractmethod
    async def delete_object(self, key: str) -> None:
        """Delete *key*.  Deleting a missing key is not an error."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if an object is stored under *key*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"r2:my-bucket"``."""
