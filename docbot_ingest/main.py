"""docbot-ingest FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging before the application object is created.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from docbot_ingest import __version__
from docbot_ingest.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from docbot_ingest.api.routes import router as api_router
from docbot_ingest.config.chunking import ChunkingConfig
from docbot_ingest.config.loader import load_config
from docbot_ingest.config.settings import Settings
from docbot_ingest.interfaces.object_store_provider import IObjectStoreProvider
from docbot_ingest.pipeline.orchestrator import BatchLimits, IngestionOrchestrator
from docbot_ingest.pipeline.progress_tracker import ProgressTracker
from docbot_ingest.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from docbot_ingest.providers.object_store.local_object_store import LocalObjectStore
from docbot_ingest.providers.object_store.s3_object_store import S3ObjectStore
from docbot_ingest.services.document_service import DocumentService
from docbot_ingest.services.manifest_service import ManifestService
from docbot_ingest.utils.errors import ConfigurationError
from docbot_ingest.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings.config_path, settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_object_store(app_settings: Settings) -> IObjectStoreProvider:
    """Select the object store backend named by ``OBJECT_STORE_BACKEND``."""
    backend = app_settings.object_store_backend.lower()
    if backend == "local":
        return LocalObjectStore(app_settings.local_object_store_dir)
    if backend == "s3":
        return S3ObjectStore.from_settings(app_settings)
    raise ConfigurationError(message=f"Unknown OBJECT_STORE_BACKEND: {backend}")


# ---------------------------------------------------------------------------
# Full DI assembly for the FastAPI application
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    from docbot_ingest.providers.vector_store.chromadb_provider import ChromaDBProvider

    resolved_config = app_config if app_config is not None else config

    object_store = _build_object_store(app_settings)
    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)
    vector_store = ChromaDBProvider(
        persist_directory=app_settings.chromadb_persist_dir,
        collection_prefix=app_settings.chromadb_collection_prefix,
        expected_dimension=embedding_provider.get_dimension(),
    )

    progress_tracker = ProgressTracker()
    manifest_service = ManifestService(object_store)

    orchestrator = IngestionOrchestrator(
        object_store=object_store,
        embedding_provider=embedding_provider,
        vector_store=vector_store,
        manifest_service=manifest_service,
        chunking_config=ChunkingConfig.from_config(resolved_config),
        limits=BatchLimits.from_settings(app_settings),
        progress=progress_tracker.update,
    )
    document_service = DocumentService(
        object_store=object_store,
        vector_store=vector_store,
        embedding_provider=embedding_provider,
        manifest_service=manifest_service,
        progress=progress_tracker.update,
    )

    return {
        "object_store": object_store,
        "embedding_provider": embedding_provider,
        "vector_store": vector_store,
        "progress_tracker": progress_tracker,
        "manifest_service": manifest_service,
        "orchestrator": orchestrator,
        "document_service": document_service,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup."""
    missing = settings.missing_object_store_settings()
    if missing:
        _logger.warning("object_store_settings_missing", missing=missing)

    components = _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        object_store=components["object_store"].get_provider_name(),
        embedding=components["embedding_provider"].get_provider_name(),
        vector_store=components["vector_store"].get_provider_name(),
    )

    yield

    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="docbot-ingest API",
        version=__version__,
        description=(
            "Upload PDF and DOCX documents, chunk them with a strategy chosen "
            "from their structure, and embed the chunks into per-namespace "
            "vector collections in resumable, time-boxed batches."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "docbot_ingest.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
