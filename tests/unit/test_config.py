"""Unit tests for settings, YAML loading and chunking configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from docbot_ingest.config.chunking import ChunkingConfig, StrategyProfile
from docbot_ingest.config.loader import load_config
from docbot_ingest.config.settings import Settings


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("EMBEDDING_BATCH_SIZE", raising=False)
        settings = _settings()
        assert settings.embedding_batch_size == 50
        assert settings.vector_batch_size == 50
        assert settings.batches_per_call == 10
        assert settings.invocation_timeout == 120.0

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BATCHES_PER_CALL", "4")
        assert _settings().batches_per_call == 4

    def test_r2_endpoint_is_derived_from_account(self) -> None:
        settings = _settings(r2_account_id="acct123", s3_endpoint_url="")
        assert settings.s3_endpoint() == "https://acct123.r2.cloudflarestorage.com"

    def test_explicit_endpoint_wins(self) -> None:
        settings = _settings(r2_account_id="acct123", s3_endpoint_url="http://minio:9000")
        assert settings.s3_endpoint() == "http://minio:9000"

    def test_missing_object_store_settings(self) -> None:
        settings = _settings(
            object_store_backend="s3",
            r2_access_key_id="key",
            r2_secret_access_key="",
            r2_bucket_name="",
        )
        assert settings.missing_object_store_settings() == ["R2_SECRET_ACCESS_KEY", "R2_BUCKET_NAME"]
        assert _settings(object_store_backend="local").missing_object_store_settings() == []


class TestLoadConfig:
    def test_yaml_and_env_are_merged(self, tmp_path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "chunking:\n  standard:\n    max_chunk_size: 3000\n"
            "ingestion:\n  batches_per_call: 99\n",
            encoding="utf-8",
        )
        config = load_config(str(path), settings=_settings(batches_per_call=7))
        assert config["chunking"]["standard"]["max_chunk_size"] == 3000
        # Environment-derived settings override the YAML file.
        assert config["ingestion"]["batches_per_call"] == 7

    def test_missing_file_yields_env_sections_only(self, tmp_path) -> None:
        config = load_config(str(tmp_path / "absent.yaml"), settings=_settings())
        assert "chunking" not in config
        assert ChunkingConfig.from_config(config) == ChunkingConfig()

    def test_repository_config_matches_defaults(self, project_root) -> None:
        config = load_config(str(project_root / "config" / "config.yaml"), settings=_settings())
        chunking = ChunkingConfig.from_config(config)
        defaults = ChunkingConfig()
        assert chunking.faq == defaults.faq
        assert chunking.glossary == defaults.glossary
        assert chunking.manual == defaults.manual
        assert chunking.standard == defaults.standard


class TestChunkingConfig:
    def test_default_profiles(self) -> None:
        config = ChunkingConfig()
        assert (config.manual.max_chunk_size, config.manual.target_chunk_size) == (2000, 1200)
        assert (config.manual.overlap, config.manual.min_chunk_size) == (150, 200)
        assert (config.standard.max_chunk_size, config.standard.overlap) == (2500, 200)

    def test_profile_bounds_are_validated(self) -> None:
        with pytest.raises(ValidationError):
            StrategyProfile(max_chunk_size=1000, target_chunk_size=900, overlap=200, min_chunk_size=10)
        with pytest.raises(ValidationError):
            StrategyProfile(max_chunk_size=2000, target_chunk_size=500, overlap=0, min_chunk_size=600)

    def test_namespace_override_merges_fields(self) -> None:
        config = ChunkingConfig(namespaces={"hr": {"standard": {"min_chunk_size": 150}}})
        scoped = config.for_namespace("hr")
        assert scoped.standard.min_chunk_size == 150
        assert scoped.standard.max_chunk_size == 2500
        assert config.for_namespace("other") is config
