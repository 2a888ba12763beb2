"""Utility modules for docqa.

- **errors** -- Exception hierarchy rooted at DocQAError; validation and
  not-found errors surface to callers, resource errors are absorbed by the
  pipeline workers and recorded on job or document status.
- **logging** -- structlog setup with coloured console output in
  development and JSON in production.
- **concurrency** -- :class:`SerialTaskQueue`, the one-consumer job queue
  that serializes each pipeline's inference work.
"""

from docqa.utils.concurrency import SerialTaskQueue
from docqa.utils.errors import (
    ConfigurationError,
    DocQAError,
    DocumentNotFoundError,
    ExtractionError,
    InvalidInputError,
    LLMError,
    PipelineError,
    ProviderUnavailableError,
    RAGError,
    RerankError,
)
from docqa.utils.logging import configure_logging, get_logger

__all__ = [
    "ConfigurationError",
    "DocQAError",
    "DocumentNotFoundError",
    "ExtractionError",
    "InvalidInputError",
    "LLMError",
    "PipelineError",
    "ProviderUnavailableError",
    "RAGError",
    "RerankError",
    "SerialTaskQueue",
    "configure_logging",
    "get_logger",
]
