"""Custom exception hierarchy for docqa.

All application exceptions inherit from :class:`DocQAError`, which carries
an optional ``provider_name`` so error handlers can tell which collaborator
(e.g. "fastembed", "chromadb", "onnx-cross-encoder") caused the failure.

The hierarchy follows the three failure families of the pipeline:

    DocQAError  (base -- catch-all for any docqa error)
    +-- InvalidInputError        (validation: blank ids, bad intervals, length
    |                             or dimension mismatches; also a ValueError)
    +-- DocumentNotFoundError    (catalog lookup miss; also a LookupError)
    +-- ConfigurationError       (startup / invalid numeric policy)
    +-- ExtractionError          (text extractor failure)
    +-- RAGError                 (embedding or search-index failure)
    +-- RerankError              (pairwise relevance scorer failure)
    +-- LLMError                 (answer generator failure)
    +-- ProviderUnavailableError (external service down / unreachable)
    +-- PipelineError            (an ingestion stage failed)

Validation and not-found errors surface synchronously to the caller.
Resource errors raised inside a worker job are caught by the orchestrator
and reflected in job or document status instead of propagating.
"""


class DocQAError(Exception):
    """Base exception for all docqa errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name``.  ``__str__`` prefixes the provider name in brackets,
    e.g. ``[chromadb] Upsert failed``.
    """

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
# Caller errors
# ---------------------------------------------------------------------------

class InvalidInputError(DocQAError, ValueError):
    """Raised when an argument violates a precondition (fail fast, never retried)."""

    def __init__(
        self,
        message: str = "Invalid input",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentNotFoundError(DocQAError, LookupError):
    """Raised when a document id has no catalog record."""

    def __init__(
        self,
        message: str = "Document not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(DocQAError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Resource errors
# ---------------------------------------------------------------------------

class ExtractionError(DocQAError):
    """Raised when raw text cannot be extracted from a stored document."""

    def __init__(
        self,
        message: str = "Text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RAGError(DocQAError):
    """Raised when an embedding or search-index operation fails."""

    def __init__(
        self,
        message: str = "RAG pipeline operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class RerankError(DocQAError):
    """Raised when the pairwise relevance scorer fails for any candidate."""

    def __init__(
        self,
        message: str = "Reranking failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(DocQAError):
    """Raised when an LLM API call fails or returns an unusable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(DocQAError):
    """Raised when an external service or provider is unreachable."""

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Orchestration errors
# ---------------------------------------------------------------------------

class PipelineError(DocQAError):
    """Raised when an ingestion stage fails; wraps the underlying cause."""

    def __init__(
        self,
        message: str = "Pipeline stage failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
