"""Application settings loaded from environment variables via pydantic-settings.

Values are read, in priority order, from environment variables and then a
``.env`` file in the working directory; field ``openai_api_key`` maps to
``OPENAI_API_KEY`` and so on.  Defaults apply when neither is present.

Chunking thresholds live in ``config/config.yaml`` (see
:mod:`docbot_ingest.config.chunking`); this class covers credentials,
provider endpoints and the batch/retry/timeout knobs of the orchestrator.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """docbot-ingest settings.

    Environment variables override defaults. Loaded from .env file when present.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # === Embedding service ===
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_embedding_model: str = "text-embedding-ada-002"
    # Vector size for models missing from the built-in table; 0 means use the table.
    openai_embedding_dimension: int = 0

    # === Vector database ===
    chromadb_persist_dir: str = "./data/chromadb"
    # Each namespace maps to one collection named <prefix><namespace>.
    chromadb_collection_prefix: str = "docbot-"

    # === Object storage ===
    object_store_backend: str = "s3"  # "s3" (S3 / Cloudflare R2) or "local"
    r2_account_id: str = ""
    r2_access_key_id: str = ""
    r2_secret_access_key: str = ""
    r2_bucket_name: str = ""
    s3_endpoint_url: str = ""  # Overrides the R2 endpoint derived from the account id
    s3_region: str = "auto"
    local_object_store_dir: str = "./data/objects"

    # === Ingestion orchestration ===
    embedding_batch_size: int = 50
    vector_batch_size: int = 50
    batches_per_call: int = 10
    embedding_concurrency: int = 10
    max_retries: int = 3
    retry_initial_delay: float = 2.0
    unit_timeout: float = 90.0
    invocation_timeout: float = 120.0
    embedding_max_chars: int = 8000
    sample_chars: int = 10000

    # === App Config ===
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    app_env: str = "development"
    log_level: str = "INFO"
    config_path: str = "config/config.yaml"

    def s3_endpoint(self) -> str | None:
        """Return the S3-compatible endpoint, deriving the R2 URL when unset."""
        if self.s3_endpoint_url:
            return self.s3_endpoint_url
        if self.r2_account_id:
            return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"
        return None

    def missing_object_store_settings(self) -> list[str]:
        """Return the names of required S3/R2 settings that are empty."""
        if self.object_store_backend != "s3":
            return []
        required = {
            "R2_ACCESS_KEY_ID": self.r2_access_key_id,
            "R2_SECRET_ACCESS_KEY": self.r2_secret_access_key,
            "R2_BUCKET_NAME": self.r2_bucket_name,
        }
        return [name for name, value in required.items() if not value]
