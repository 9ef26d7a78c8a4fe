"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Supports both real OpenAI and OpenAI-compatible endpoints via a custom
``base_url``.  SDK exceptions are translated into the docbot error
hierarchy so the orchestrator's retry policy can tell transient failures
(rate limits, timeouts, 5xx) from permanent ones (bad key, bad request).
"""

from __future__ import annotations

import openai
import structlog

from docbot_ingest.config.settings import Settings
from docbot_ingest.interfaces.embedding_provider import IEmbeddingProvider
from docbot_ingest.utils.errors import (
    ConfigurationError,
    DocbotError,
    RateLimitError,
    TransientExternalError,
)

logger = structlog.get_logger(logger_name=__name__)

_OPENAI_BATCH_LIMIT = 2048

# Known embedding model dimensions.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-ada-002": 1536,
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
}


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Uses ``text-embedding-ada-002`` (1536 dims) by default.  When
    ``openai_base_url`` is configured the client points at that URL.
    Inputs longer than the per-call limit are split automatically.
    """

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key

        if client is None:
            # Build client kwargs -- add base_url only when configured.
            client_kwargs: dict = {"api_key": self._api_key or "missing"}
            if settings.openai_base_url:
                client_kwargs["base_url"] = settings.openai_base_url
            # Retries are driven by the orchestrator's backoff policy.
            client_kwargs["max_retries"] = 0
            client = openai.AsyncOpenAI(**client_kwargs)

        self._client = client
        self._model = settings.openai_embedding_model or "text-embedding-ada-002"
        self._dimension = settings.openai_embedding_dimension or _MODEL_DIMENSIONS.get(
            self._model, 1536
        )
        if not settings.openai_embedding_dimension and self._model not in _MODEL_DIMENSIONS:
            logger.warning(
                "embedding_dimension_assumed",
                model=self._model,
                dimension=self._dimension,
                hint="set OPENAI_EMBEDDING_DIMENSION for this model",
            )
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Splits into calls of at most 2048 inputs.  Results come back in
        input order; the API's ``index`` field is used to restore it.
        """
        if not texts:
            return []

        try:
            all_embeddings: list[list[float]] = []
            for start in range(0, len(texts), _OPENAI_BATCH_LIMIT):
                batch = texts[start : start + _OPENAI_BATCH_LIMIT]
                response = await self._client.embeddings.create(
                    input=batch,
                    model=self._model,
                )
                ordered = sorted(response.data, key=lambda item: item.index)
                all_embeddings.extend(item.embedding for item in ordered)
                logger.info(
                    "openai_embedding_batch",
                    model=self._model,
                    provider=self._provider_label,
                    batch_size=len(batch),
                    tokens=response.usage.total_tokens if response.usage else None,
                )
        except openai.RateLimitError as exc:
            raise RateLimitError(
                message=f"{self._provider_label} rate limit: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.AuthenticationError as exc:
            raise ConfigurationError(
                message=f"{self._provider_label} rejected the API key: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.BadRequestError as exc:
            raise DocbotError(
                message=f"{self._provider_label} rejected the input: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise TransientExternalError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if len(all_embeddings) != len(texts):
            raise TransientExternalError(
                message=(
                    f"{self._provider_label} returned {len(all_embeddings)} "
                    f"embeddings for {len(texts)} inputs"
                ),
                provider_name=self.get_provider_name(),
            )
        return all_embeddings

    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""
        result = await self.embed([text])
        return result[0]

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)
