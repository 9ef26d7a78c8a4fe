"""Custom exception hierarchy for docbot-ingest.

All application exceptions inherit from :class:`DocbotError`, which carries
an optional ``provider_name`` so error handlers can identify which external
service (e.g. "openai", "chromadb", "s3") caused the failure.

    DocbotError  (base -- catch-all for any docbot-ingest error)
    +-- InputValidationError     (missing/malformed request fields, no retry)
    +-- ExtractionError          (unsupported file type or no extractable text)
    +-- TransientExternalError   (network, timeout or service error from a provider)
    |   +-- RateLimitError       (provider rate-limit exceeded)
    +-- DuplicateContentError    (manifest already holds the same content hash)
    +-- InvocationTimeoutError   (whole-invocation deadline exceeded)
    +-- ConfigurationError       (startup / missing config)

Every class exposes an ``error_category`` for structured responses and a
``status_code`` mirroring the HTTP status the API layer returns for it.
"""


class DocbotError(Exception):
    """Base exception for all docbot-ingest errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[openai] Rate limit exceeded``.
    """

    error_category = "internal_error"
    status_code = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Request / input errors
# ---------------------------------------------------------------------------

class InputValidationError(DocbotError):
    """Raised when namespace, file key or file name is missing or malformed.

    Nothing has been attempted yet when this is raised, so no rollback runs.
    """

    error_category = "validation_error"
    status_code = 400

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ExtractionError(DocbotError):
    """Raised for unsupported file types or when no text can be extracted."""

    error_category = "extraction_error"
    status_code = 422

    def __init__(
        self,
        message: str = "No text could be extracted from the file",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class TransientExternalError(DocbotError):
    """Raised when an embedding, vector-store or object-store call fails.

    Callers retry these with exponential backoff before escalating.
    """

    error_category = "external_service_error"
    status_code = 502

    def __init__(
        self,
        message: str = "External service call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RateLimitError(TransientExternalError):
    """Raised when an API rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Manifest / orchestration errors
# ---------------------------------------------------------------------------

class DuplicateContentError(DocbotError):
    """Raised when a manifest entry with the same content hash already exists."""

    error_category = "duplicate_content"
    status_code = 409

    def __init__(
        self,
        message: str = "Document with same content already exists",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InvocationTimeoutError(DocbotError):
    """Raised when a single invocation exceeds its execution-time ceiling.

    The caller may safely retry the same batch cursor.
    """

    error_category = "timeout"
    status_code = 504

    def __init__(
        self,
        message: str = "Request timed out",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(DocbotError):
    """Raised when configuration is invalid or missing at startup."""

    error_category = "configuration_error"

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
