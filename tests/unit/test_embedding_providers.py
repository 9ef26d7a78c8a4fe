"""Unit tests for the OpenAI embedding provider adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from docbot_ingest.config.settings import Settings
from docbot_ingest.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from docbot_ingest.utils.errors import (
    ConfigurationError,
    DocbotError,
    InputValidationError,
    RateLimitError,
    TransientExternalError,
)

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/embeddings")


def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_embedding_model": "text-embedding-ada-002",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


def _response(vectors: list[list[float]], order: list[int] | None = None) -> MagicMock:
    indices = order if order is not None else list(range(len(vectors)))
    response = MagicMock()
    response.data = [MagicMock(embedding=vectors[i], index=i) for i in indices]
    response.usage = MagicMock(total_tokens=12)
    return response


def _client(**create_kwargs) -> MagicMock:
    client = MagicMock()
    client.embeddings.create = AsyncMock(**create_kwargs)
    return client


def _status_error(cls: type[openai.APIStatusError], status: int) -> openai.APIStatusError:
    return cls("failure", response=httpx.Response(status, request=_REQUEST), body=None)


class TestOpenAIEmbeddingProvider:
    def test_metadata(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(), client=_client())
        assert provider.get_provider_name() == "openai_embedding"
        assert provider.get_dimension() == 1536
        assert provider.is_available() is True

    def test_compatible_endpoint_label_and_large_model(self) -> None:
        provider = OpenAIEmbeddingProvider(
            _settings(
                openai_base_url="http://localhost:8080/v1",
                openai_embedding_model="text-embedding-3-large",
            ),
            client=_client(),
        )
        assert provider.get_provider_name() == "openai-compatible_embedding"
        assert provider.get_dimension() == 3072

    def test_configured_dimension_for_unlisted_model(self) -> None:
        provider = OpenAIEmbeddingProvider(
            _settings(
                openai_base_url="http://localhost:8080/v1",
                openai_embedding_model="nomic-embed-text",
                openai_embedding_dimension=768,
            ),
            client=_client(),
        )
        assert provider.get_dimension() == 768

    def test_configured_dimension_overrides_table(self) -> None:
        provider = OpenAIEmbeddingProvider(
            _settings(
                openai_embedding_model="text-embedding-3-large",
                openai_embedding_dimension=1024,
            ),
            client=_client(),
        )
        assert provider.get_dimension() == 1024

    def test_unlisted_model_without_setting_assumes_1536(self) -> None:
        provider = OpenAIEmbeddingProvider(
            _settings(openai_embedding_model="nomic-embed-text"), client=_client()
        )
        assert provider.get_dimension() == 1536

    def test_unavailable_without_key(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(openai_api_key=""), client=_client())
        assert provider.is_available() is False

    @pytest.mark.asyncio
    async def test_embed_restores_input_order(self) -> None:
        client = _client(return_value=_response([[0.1], [0.2], [0.3]], order=[2, 0, 1]))
        provider = OpenAIEmbeddingProvider(_settings(), client=client)

        result = await provider.embed(["a", "b", "c"])

        assert result == [[0.1], [0.2], [0.3]]
        client.embeddings.create.assert_awaited_once_with(
            input=["a", "b", "c"], model="text-embedding-ada-002"
        )

    @pytest.mark.asyncio
    async def test_embed_empty_list_skips_api(self) -> None:
        client = _client()
        provider = OpenAIEmbeddingProvider(_settings(), client=client)
        assert await provider.embed([]) == []
        client.embeddings.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_embed_single(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(), client=_client(return_value=_response([[0.5, 0.5]])))
        assert await provider.embed_single("hello") == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_count_mismatch_is_transient(self) -> None:
        provider = OpenAIEmbeddingProvider(_settings(), client=_client(return_value=_response([[0.1]])))
        with pytest.raises(TransientExternalError, match="returned 1 embeddings for 2 inputs"):
            await provider.embed(["a", "b"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("exc_cls", "status", "expected"),
        [
            (openai.RateLimitError, 429, RateLimitError),
            (openai.AuthenticationError, 401, ConfigurationError),
            (openai.InternalServerError, 500, TransientExternalError),
        ],
    )
    async def test_sdk_errors_are_translated(self, exc_cls, status, expected) -> None:
        client = _client(side_effect=_status_error(exc_cls, status))
        provider = OpenAIEmbeddingProvider(_settings(), client=client)
        with pytest.raises(expected) as excinfo:
            await provider.embed(["text"])
        assert excinfo.value.provider_name == "openai_embedding"

    @pytest.mark.asyncio
    async def test_bad_request_is_fatal_not_validation(self) -> None:
        client = _client(side_effect=_status_error(openai.BadRequestError, 400))
        provider = OpenAIEmbeddingProvider(_settings(), client=client)
        with pytest.raises(DocbotError) as excinfo:
            await provider.embed(["text"])
        assert not isinstance(excinfo.value, InputValidationError)
        assert not isinstance(excinfo.value, TransientExternalError)
        assert excinfo.value.error_category == "internal_error"
        assert excinfo.value.status_code == 500
        assert excinfo.value.provider_name == "openai_embedding"

    @pytest.mark.asyncio
    async def test_connection_error_is_transient(self) -> None:
        client = _client(side_effect=openai.APIConnectionError(request=_REQUEST))
        provider = OpenAIEmbeddingProvider(_settings(), client=client)
        with pytest.raises(TransientExternalError):
            await provider.embed(["text"])
