"""Service seams for the question pipeline: retriever and reranker.

Each has a single production implementation, but the orchestrator depends
only on these contracts so tests can substitute fakes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docqa.models.rag import RerankResult, SearchResult


class IRetriever(ABC):
    """Contract for first-stage candidate retrieval."""

    @abstractmethod
    async def search(self, query: str, k: int) -> list[SearchResult]:
        """Return up to *k* candidates for *query*, best first.

        Internal failures are logged and produce an empty list; an empty
        result is a valid "no evidence" outcome, not an error.
        """


class IReranker(ABC):
    """Contract for second-stage reranking."""

    @abstractmethod
    async def rerank(self, query: str, candidates: list[SearchResult]) -> list[RerankResult]:
        """Rescore every candidate and return them sorted by descending score.

        The output has the same length as *candidates*.

        Raises
        ------
        docqa.utils.errors.RerankError
            If scoring any single candidate fails.
        """
