"""Unit tests for the S3-compatible and local filesystem object stores."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from docbot_ingest.config.settings import Settings
from docbot_ingest.providers.object_store import LocalObjectStore, S3ObjectStore
from docbot_ingest.utils.errors import (
    ConfigurationError,
    InputValidationError,
    TransientExternalError,
)


def _client_error(code: str, operation: str = "GetObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


class TestS3ObjectStore:
    @pytest.fixture()
    def client(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture()
    def store(self, client: MagicMock) -> S3ObjectStore:
        return S3ObjectStore(bucket="docs", client=client)

    @pytest.mark.asyncio
    async def test_get_object_reads_body(self, store: S3ObjectStore, client: MagicMock) -> None:
        body = MagicMock()
        body.read.return_value = b"payload"
        client.get_object.return_value = {"Body": body}

        assert await store.get_object("hr/a.pdf") == b"payload"
        client.get_object.assert_called_once_with(Bucket="docs", Key="hr/a.pdf")

    @pytest.mark.asyncio
    async def test_missing_key_returns_none(self, store: S3ObjectStore, client: MagicMock) -> None:
        client.get_object.side_effect = _client_error("NoSuchKey")
        assert await store.get_object("hr/missing.pdf") is None

    @pytest.mark.asyncio
    async def test_other_client_errors_are_transient(
        self, store: S3ObjectStore, client: MagicMock
    ) -> None:
        client.get_object.side_effect = _client_error("InternalError")
        with pytest.raises(TransientExternalError, match="S3 get_object failed"):
            await store.get_object("hr/a.pdf")

    @pytest.mark.asyncio
    async def test_put_object_passes_content_type(
        self, store: S3ObjectStore, client: MagicMock
    ) -> None:
        await store.put_object("hr/a.pdf", b"data", content_type="application/pdf")
        client.put_object.assert_called_once_with(
            Bucket="docs", Key="hr/a.pdf", Body=b"data", ContentType="application/pdf"
        )

    @pytest.mark.asyncio
    async def test_exists(self, store: S3ObjectStore, client: MagicMock) -> None:
        assert await store.exists("hr/a.pdf") is True
        client.head_object.side_effect = _client_error("404", "HeadObject")
        assert await store.exists("hr/a.pdf") is False

    @pytest.mark.asyncio
    async def test_delete_missing_key_is_ignored(
        self, store: S3ObjectStore, client: MagicMock
    ) -> None:
        client.delete_object.side_effect = _client_error("NoSuchKey", "DeleteObject")
        await store.delete_object("hr/a.pdf")

    def test_provider_name_includes_bucket(self, store: S3ObjectStore) -> None:
        assert store.get_provider_name() == "s3:docs"

    def test_from_settings_requires_credentials(self) -> None:
        settings = Settings(
            _env_file=None,
            object_store_backend="s3",
            r2_access_key_id="",
            r2_secret_access_key="",
            r2_bucket_name="",
        )
        with pytest.raises(ConfigurationError, match="R2_ACCESS_KEY_ID"):
            S3ObjectStore.from_settings(settings)


class TestLocalObjectStore:
    @pytest.fixture()
    def store(self, tmp_path) -> LocalObjectStore:
        return LocalObjectStore(tmp_path / "objects")

    @pytest.mark.asyncio
    async def test_put_get_delete(self, store: LocalObjectStore) -> None:
        await store.put_object("hr/nested/a.pdf", b"bytes")
        assert await store.exists("hr/nested/a.pdf") is True
        assert await store.get_object("hr/nested/a.pdf") == b"bytes"

        await store.delete_object("hr/nested/a.pdf")
        assert await store.exists("hr/nested/a.pdf") is False
        assert await store.get_object("hr/nested/a.pdf") is None

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, store: LocalObjectStore) -> None:
        await store.delete_object("never/written.pdf")

    @pytest.mark.asyncio
    async def test_keys_cannot_escape_root(self, store: LocalObjectStore) -> None:
        with pytest.raises(InputValidationError, match="escapes the store root"):
            await store.put_object("../outside.pdf", b"x")
