"""Unit tests for the provider factories and app assembly in main.py."""

from __future__ import annotations

import pytest

from docbot_ingest.config.settings import Settings
from docbot_ingest.main import _build_all, _build_object_store, create_app
from docbot_ingest.providers.object_store import LocalObjectStore
from docbot_ingest.utils.errors import ConfigurationError


def _settings(tmp_path, **overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "object_store_backend": "local",
        "local_object_store_dir": str(tmp_path / "objects"),
        "chromadb_persist_dir": str(tmp_path / "chromadb"),
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


class TestBuildObjectStore:
    def test_local_backend(self, tmp_path) -> None:
        store = _build_object_store(_settings(tmp_path))
        assert isinstance(store, LocalObjectStore)
        assert (tmp_path / "objects").is_dir()

    def test_s3_backend_without_credentials(self, tmp_path) -> None:
        settings = _settings(
            tmp_path,
            object_store_backend="s3",
            r2_access_key_id="",
            r2_secret_access_key="",
            r2_bucket_name="",
        )
        with pytest.raises(ConfigurationError):
            _build_object_store(settings)

    def test_unknown_backend(self, tmp_path) -> None:
        with pytest.raises(ConfigurationError, match="Unknown OBJECT_STORE_BACKEND: gcs"):
            _build_object_store(_settings(tmp_path, object_store_backend="gcs"))


class TestBuildAll:
    def test_components_are_wired(self, tmp_path) -> None:
        components = _build_all(_settings(tmp_path), app_config={})

        assert set(components) == {
            "object_store",
            "embedding_provider",
            "vector_store",
            "progress_tracker",
            "manifest_service",
            "orchestrator",
            "document_service",
        }
        assert components["embedding_provider"].get_dimension() == 1536
        assert components["vector_store"].get_provider_name() == "chromadb"


def test_create_app_registers_routes() -> None:
    paths = {route.path for route in create_app().routes}
    assert "/api/v1/documents/process" in paths
    assert "/api/v1/documents/upload" in paths
    assert "/api/v1/health" in paths
