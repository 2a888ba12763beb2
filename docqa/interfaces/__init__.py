"""Interface definitions for every external collaborator of the pipeline.

Business logic talks only to these ABCs.  Concrete adapters live in
``docqa/providers/`` (and ``docqa/services/ingestion/source_processors/``
for the extractors) and are wired together in ``docqa/main.py``.

CONCRETE PROVIDER MAP:
    Interface               →  Implementations
    ──────────────────────────────────────────────────────────────
    IEmbeddingProvider      →  FastEmbedEmbeddingProvider, OpenAIEmbeddingProvider
    ISearchIndexProvider    →  InMemorySearchIndex, ChromaDBSearchIndex
    IRelevanceScorer        →  OnnxCrossEncoderScorer
    ITextExtractor          →  PDFTextExtractor, PlainTextExtractor
    ICatalogProvider        →  SQLiteCatalogProvider
    ILLMProvider            →  OpenAILLMProvider, AnthropicLLMProvider
    IRetriever              →  HybridRetriever
    IReranker               →  WindowedReranker
"""

from docqa.interfaces.catalog_provider import ICatalogProvider
from docqa.interfaces.embedding_provider import IEmbeddingProvider
from docqa.interfaces.llm_provider import ILLMProvider
from docqa.interfaces.relevance_scorer import IRelevanceScorer
from docqa.interfaces.retrieval import IReranker, IRetriever
from docqa.interfaces.search_index_provider import ISearchIndexProvider
from docqa.interfaces.text_extractor import ITextExtractor

__all__ = [
    "ICatalogProvider",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IRelevanceScorer",
    "IReranker",
    "IRetriever",
    "ISearchIndexProvider",
    "ITextExtractor",
]
