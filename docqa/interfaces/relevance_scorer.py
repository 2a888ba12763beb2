"""Abstract base class for pairwise (cross-encoder) relevance scorers.

A scorer does two things: tokenize a ``(query, passage)`` pair into one
joint token sequence, and score a fixed-width token window.  Windowing and
padding are the caller's job; see
:class:`~docqa.services.rerank.windowed_reranker.WindowedReranker`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: OnnxCrossEncoderScorer (onnxruntime + tokenizers)
# Located in: docqa/providers/rerank/
class IRelevanceScorer(ABC):
    """Contract for cross-encoder scoring used by the reranker."""

    @abstractmethod
    async def encode_pair(
        self, query: str, passage: str
    ) -> tuple[list[int], list[int], list[int]]:
        """Tokenize *query* and *passage* as one pair without truncation.

        Returns
        -------
        tuple[list[int], list[int], list[int]]
            ``(input_ids, attention_mask, token_type_ids)`` of equal length.
            Token type ids are ``0`` for the query segment and ``1`` for the
            passage segment.  The length may exceed the model's maximum
            input width.
        """

    @abstractmethod
    async def score(
        self,
        input_ids: list[int],
        attention_mask: list[int],
        token_type_ids: list[int],
    ) -> float:
        """Score one already-padded token window.

        Parameters
        ----------
        input_ids:
            Token ids, exactly as long as the model's fixed input width.
        attention_mask:
            ``1`` for real tokens, ``0`` for padding; same length.
        token_type_ids:
            Segment id per token; same length.

        Returns
        -------
        float
            Unbounded relevance logit; higher means more relevant.

        Raises
        ------
        docqa.utils.errors.RerankError
            If model inference fails.
        """

    @abstractmethod
    def get_pad_token_id(self) -> int:
        """Return the token id used to pad windows to the input width.

        The reranker only asks for it after :meth:`encode_pair` returns.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for log output."""
