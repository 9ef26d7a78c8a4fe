"""Utility modules for docbot-ingest.

- **confidence** -- additive confidence scoring for chunk metadata.
- **errors** -- exception hierarchy rooted at DocbotError; each class maps
  to an error category and HTTP-equivalent status.
- **concurrency** -- order-preserving bounded ``asyncio.gather``.
- **logging** -- structlog setup (console in development, JSON in production).
- **retry** -- retry-with-backoff and invocation deadline helpers.
"""

from docbot_ingest.utils.concurrency import throttled_gather
from docbot_ingest.utils.confidence import (
    ConfidenceLevel,
    additive_confidence,
    confidence_to_level,
)
from docbot_ingest.utils.errors import (
    ConfigurationError,
    DocbotError,
    DuplicateContentError,
    ExtractionError,
    InputValidationError,
    InvocationTimeoutError,
    RateLimitError,
    TransientExternalError,
)
from docbot_ingest.utils.logging import configure_logging, get_logger
from docbot_ingest.utils.retry import retry_with_backoff, with_deadline

__all__ = [
    "ConfidenceLevel",
    "ConfigurationError",
    "DocbotError",
    "DuplicateContentError",
    "ExtractionError",
    "InputValidationError",
    "InvocationTimeoutError",
    "RateLimitError",
    "TransientExternalError",
    "additive_confidence",
    "confidence_to_level",
    "configure_logging",
    "get_logger",
    "retry_with_backoff",
    "throttled_gather",
    "with_deadline",
]
