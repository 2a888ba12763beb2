"""Abstract base class for text-embedding service providers.

Defines the contract for turning text into fixed-dimension dense vectors.
Implementations may wrap a local ONNX model (fastembed) or a remote
OpenAI-compatible embeddings endpoint.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   FastEmbedEmbeddingProvider  - local ONNX model via fastembed (default)
#   OpenAIEmbeddingProvider     - OpenAI-compatible embeddings API
# Located in: docqa/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for embedding services used by ingestion and hybrid retrieval.

    Vectors are consumed by
    :class:`~docqa.interfaces.search_index_provider.ISearchIndexProvider`
    for indexing and for the vector half of a hybrid query.  Every vector a
    provider returns has the same length, :meth:`get_dimension`, and is
    L2-normalized so that a dot product equals cosine similarity.
    """

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """Generate embedding vectors for a batch of texts.

        Parameters
        ----------
        texts:
            One or more text strings to embed.  Implementations handle
            batching internally if the backend has a per-call limit.

        Returns
        -------
        list[list[float]]
            Embedding vectors corresponding positionally to *texts*.

        Raises
        ------
        docqa.utils.errors.RAGError
            If the embedding backend fails.
        """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Used to embed the question at query time.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Must stay constant for the lifetime of the provider.  A search index
        built with one dimension cannot accept vectors of another.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return an identifier for this provider, stored on catalog records
        as the embedding model name (e.g. ``"fastembed_bge-small-en-v1.5"``)."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured and usable."""
