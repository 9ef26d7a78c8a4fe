"""Filesystem-backed object store for local development and tests.

Keys map to paths under a root directory (``a/b.pdf`` ->
``<root>/a/b.pdf``).  Keys that would escape the root are rejected.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from docbot_ingest.interfaces.object_store_provider import IObjectStoreProvider
from docbot_ingest.utils.errors import InputValidationError, TransientExternalError

logger = structlog.get_logger(logger_name=__name__)


class LocalObjectStore(IObjectStoreProvider):
    """Object store that keeps each object as a file under *root*."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get_object(self, key: str) -> bytes | None:
        path = self._path_for(key)
        if not path.is_file():
            return None
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise TransientExternalError(
                message=f"Failed to read {key}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def put_object(
        self, key: str, data: bytes, content_type: str = "application/octet-stream"
    ) -> None:
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as exc:
            raise TransientExternalError(
                message=f"Failed to write {key}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("object_store_put", key=key, size=len(data))

    async def delete_object(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise TransientExternalError(
                message=f"Failed to delete {key}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("object_store_delete", key=key)

    async def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()

    def get_provider_name(self) -> str:
        return "local"

    def _path_for(self, key: str) -> Path:
        path = (self._root / key.lstrip("/")).resolve()
        if path != self._root and self._root not in path.parents:
            raise InputValidationError(
                message=f"Object key escapes the store root: {key}",
                provider_name=self.get_provider_name(),
            )
        return path
