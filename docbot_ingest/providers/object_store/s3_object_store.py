"""S3-compatible object store provider (AWS S3, Cloudflare R2).

boto3 is synchronous, so every call runs in a worker thread via
``asyncio.to_thread``.  A missing key is reported as ``None`` / ``False``;
every other ``ClientError`` becomes a
:class:`~docbot_ingest.utils.errors.TransientExternalError`.
"""

from __future__ import annotations

import asyncio
from typing import Any

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from docbot_ingest.config.settings import Settings
from docbot_ingest.interfaces.object_store_provider import IObjectStoreProvider
from docbot_ingest.utils.errors import ConfigurationError, TransientExternalError

logger = structlog.get_logger(logger_name=__name__)

_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


def _is_missing(exc: ClientError) -> bool:
    return exc.response.get("Error", {}).get("Code") in _MISSING_CODES


class S3ObjectStore(IObjectStoreProvider):
    """Object store backed by an S3-compatible bucket."""

    def __init__(self, bucket: str, client: Any) -> None:
        self._bucket = bucket
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> S3ObjectStore:
        """Build a client from R2/S3 settings.

        Raises
        ------
        ConfigurationError
            If bucket name or credentials are missing.
        """
        missing = settings.missing_object_store_settings()
        if missing:
            raise ConfigurationError(
                message=f"Missing object store settings: {', '.join(missing)}",
                provider_name="s3",
            )
        client = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint(),
            aws_access_key_id=settings.r2_access_key_id,
            aws_secret_access_key=settings.r2_secret_access_key,
            region_name=settings.s3_region,
            config=Config(retries={"max_attempts": 1}),
        )
        return cls(bucket=settings.r2_bucket_name, client=client)

    # ------------------------------------------------------------------
    # IObjectStoreProvider implementation
    # ------------------------------------------------------------------

    async def get_object(self, key: str) -> bytes | None:
        try:
            return await asyncio.to_thread(self._get_sync, key)
        except ClientError as exc:
            if _is_missing(exc):
                return None
            raise self._wrap("get_object", key, exc) from exc
        except BotoCoreError as exc:
            raise self._wrap("get_object", key, exc) from exc

    async def put_object(
        self, key: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> None:
        try:
            await asyncio.to_thread(
                self._client.put_object,
                Bucket=self._bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as exc:
            raise self._wrap("put_object", key, exc) from exc
        logger.info("object_store_put", key=key, size=len(data))

    async def delete_object(self, key: str) -> None:
        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=self._bucket, Key=key)
        except ClientError as exc:
            if _is_missing(exc):
                return
            raise self._wrap("delete_object", key, exc) from exc
        except BotoCoreError as exc:
            raise self._wrap("delete_object", key, exc) from exc
        logger.info("object_store_delete", key=key)

    async def exists(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self._client.head_object, Bucket=self._bucket, Key=key)
            return True
        except ClientError as exc:
            if _is_missing(exc):
                return False
            raise self._wrap("head_object", key, exc) from exc
        except BotoCoreError as exc:
            raise self._wrap("head_object", key, exc) from exc

    def get_provider_name(self) -> str:
        return f"s3:{self._bucket}"

    # -- Sync helpers (executed via asyncio.to_thread) -------------------------

    def _get_sync(self, key: str) -> bytes:
        response = self._client.get_object(Bucket=self._bucket, Key=key)
        return response["Body"].read()

    def _wrap(self, operation: str, key: str, exc: Exception) -> TransientExternalError:
        logger.warning("object_store_error", operation=operation, key=key, error=str(exc))
        return TransientExternalError(
            message=f"S3 {operation} failed for {key}: {exc}",
            provider_name=self.get_provider_name(),
        )
