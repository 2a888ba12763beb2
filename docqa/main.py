"""docqa composition root.

Wires providers and services from :class:`~docqa.config.settings.Settings`
into a :class:`~docqa.pipeline.orchestrator.PipelineOrchestrator`.  Every
concrete adapter is chosen here; nothing below this module constructs its
own collaborators.

Typical use::

    orchestrator = build_orchestrator(Settings())
    await orchestrator.initialize()
    record = await orchestrator.submit_document("report.pdf", None, data)
    job = orchestrator.submit_question("What changed in 2023?")
"""

from __future__ import annotations

import structlog

from docqa.config.settings import Settings
from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.interfaces.llm_provider import ILLMProvider
from docqa.interfaces.relevance_scorer import IRelevanceScorer
from docqa.interfaces.search_index_provider import ISearchIndexProvider
from docqa.pipeline.orchestrator import PipelineOrchestrator
from docqa.pipeline.progress_tracker import DocumentProgressTracker
from docqa.pipeline.question_registry import QuestionRegistry
from docqa.providers.catalog.sqlite_catalog_provider import SQLiteCatalogProvider
from docqa.services.answer_service import AnswerService
from docqa.services.citation_service import CitationResolver
from docqa.services.ingestion.chunker import SentenceChunker
from docqa.services.ingestion.ingestion_service import IngestionService
from docqa.services.ingestion.source_processors import PDFTextExtractor, PlainTextExtractor
from docqa.services.ingestion.text_cleaner import TextCleaner
from docqa.services.interval_merger import IntervalMerger
from docqa.services.rerank.windowed_reranker import WindowedReranker
from docqa.services.retrieval.hybrid_retriever import HybridRetriever
from docqa.utils.errors import ConfigurationError
from docqa.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Return the embedding provider named by ``embedding_provider``.

    ``fastembed`` runs locally; ``openai`` needs ``OPENAI_API_KEY`` (or an
    OpenAI-compatible ``OPENAI_BASE_URL``).
    """
    choice = app_settings.embedding_provider.lower()
    if choice == "fastembed":
        from docqa.providers.embedding.fastembed_embedding_provider import (
            FastEmbedEmbeddingProvider,
        )

        return FastEmbedEmbeddingProvider(model_name=app_settings.fastembed_model)
    if choice == "openai":
        from docqa.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        provider = OpenAIEmbeddingProvider(settings=app_settings)
        if not provider.is_available() and not app_settings.openai_base_url:
            raise ConfigurationError(
                message="EMBEDDING_PROVIDER=openai requires OPENAI_API_KEY",
                provider_name=provider.get_provider_name(),
            )
        return provider
    raise ConfigurationError(message=f"Unknown embedding provider '{choice}'")


def _build_search_index(app_settings: Settings) -> ISearchIndexProvider:
    choice = app_settings.index_backend.lower()
    if choice == "memory":
        from docqa.providers.search_index.memory_index import InMemorySearchIndex

        return InMemorySearchIndex()
    if choice == "chromadb":
        # Imported lazily: chromadb is heavy and patches telemetry on import.
        from docqa.providers.search_index.chromadb_index import ChromaDBSearchIndex

        return ChromaDBSearchIndex(
            persist_directory=app_settings.chromadb_persist_dir,
            collection_name=app_settings.chromadb_collection,
        )
    raise ConfigurationError(message=f"Unknown index backend '{choice}'")


def _build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Return the answer-generation provider named by ``llm_provider``."""
    choice = app_settings.llm_provider.lower()
    if choice == "anthropic":
        from docqa.providers.llm.anthropic_provider import AnthropicLLMProvider

        return AnthropicLLMProvider(settings=app_settings)
    if choice == "openai":
        from docqa.providers.llm.openai_provider import OpenAILLMProvider

        return OpenAILLMProvider(settings=app_settings)
    raise ConfigurationError(message=f"Unknown LLM provider '{choice}'")


def _build_scorer(app_settings: Settings) -> IRelevanceScorer:
    from docqa.providers.rerank.onnx_cross_encoder import OnnxCrossEncoderScorer

    return OnnxCrossEncoderScorer(model_dir=app_settings.rerank_model_dir)


# ---------------------------------------------------------------------------
# Orchestrator assembly
# ---------------------------------------------------------------------------


def build_orchestrator(
    settings: Settings | None = None,
    *,
    embedding_provider: IEmbeddingProvider | None = None,
    search_index: ISearchIndexProvider | None = None,
    scorer: IRelevanceScorer | None = None,
    llm_provider: ILLMProvider | None = None,
) -> PipelineOrchestrator:
    """Assemble a :class:`PipelineOrchestrator` from *settings*.

    Keyword arguments replace the corresponding provider that *settings*
    would otherwise select, which is how tests and embedding applications
    plug in their own adapters.  Configures logging as a side effect.

    The returned orchestrator still needs ``await orchestrator.initialize()``
    before use.
    """
    app_settings = settings or Settings()
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )

    embedder = embedding_provider or _build_embedding_provider(app_settings)
    index = search_index or _build_search_index(app_settings)
    relevance_scorer = scorer or _build_scorer(app_settings)
    llm = llm_provider or _build_llm_provider(app_settings)

    catalog = SQLiteCatalogProvider(
        db_path=app_settings.catalog_db_path,
        blob_dir=app_settings.blob_dir,
    )
    ingestion_service = IngestionService(
        extractors=[PDFTextExtractor(), PlainTextExtractor()],
        cleaner=TextCleaner(),
        chunker=SentenceChunker(
            target_chars=app_settings.chunk_target_chars,
            overlap_chars=app_settings.chunk_overlap_chars,
        ),
        embedding_provider=embedder,
        search_index=index,
        catalog=catalog,
    )
    retriever = HybridRetriever(
        embedding_provider=embedder,
        search_index=index,
        vector_weight=app_settings.fusion_vector_weight,
        keyword_weight=app_settings.fusion_keyword_weight,
    )
    reranker = WindowedReranker(
        scorer=relevance_scorer,
        max_length=app_settings.rerank_max_length,
        window_size=app_settings.rerank_window_size,
        window_overlap=app_settings.rerank_window_overlap,
    )
    answer_service = AnswerService(
        llm_provider=llm,
        temperature=app_settings.llm_temperature,
        max_tokens=app_settings.llm_max_tokens,
    )

    orchestrator = PipelineOrchestrator(
        ingestion_service=ingestion_service,
        retriever=retriever,
        reranker=reranker,
        citation_resolver=CitationResolver(catalog=catalog, merger=IntervalMerger()),
        answer_service=answer_service,
        catalog=catalog,
        search_index=index,
        progress_tracker=DocumentProgressTracker(),
        question_registry=QuestionRegistry(),
        retrieval_top_k=app_settings.retrieval_top_k,
        rerank_top_n=app_settings.rerank_top_n,
    )

    _logger.info(
        "orchestrator_built",
        embedding=embedder.get_provider_name(),
        index=index.get_provider_name(),
        scorer=relevance_scorer.get_provider_name(),
        llm=llm.get_provider_name(),
        app_env=app_settings.app_env,
    )
    return orchestrator
