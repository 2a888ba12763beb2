"""Cross-encoder reranking with sliding windows for over-length passages.

The cross-encoder reads at most ``max_length`` tokens.  Truncating a long
``(query, passage)`` encoding would hide everything past the cut from the
model, so long encodings are split instead: windows of ``window_size``
tokens, advancing by ``window_size - window_overlap``, each padded to
``max_length`` and scored on its own.  The passage keeps the **maximum**
window score, so one window holding the decisive evidence is enough.

Every candidate is scored; nothing is filtered here.  A scoring failure on
any candidate fails the whole call with :class:`RerankError`, which keeps
"model runtime broken" distinct from "nothing relevant found".
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import structlog

from docqa.interfaces.retrieval import IReranker
from docqa.models.rag import RerankResult, SearchResult
from docqa.utils.errors import ConfigurationError, RerankError

if TYPE_CHECKING:
    from docqa.interfaces.relevance_scorer import IRelevanceScorer

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_MAX_LENGTH = 512
DEFAULT_WINDOW_SIZE = 480
DEFAULT_WINDOW_OVERLAP = 50


class WindowedReranker(IReranker):
    """Reranks candidates with an :class:`IRelevanceScorer`.

    Parameters
    ----------
    scorer:
        Tokenizes pairs and scores padded token windows.
    max_length:
        Fixed model input width; every scored window is padded to it.
    window_size:
        Tokens per window for over-length encodings (``<= max_length``).
    window_overlap:
        Tokens shared by consecutive windows (``< window_size``).
    """

    def __init__(
        self,
        scorer: IRelevanceScorer,
        max_length: int = DEFAULT_MAX_LENGTH,
        window_size: int = DEFAULT_WINDOW_SIZE,
        window_overlap: int = DEFAULT_WINDOW_OVERLAP,
    ) -> None:
        if max_length <= 0:
            raise ConfigurationError("max_length must be positive")
        if not 0 < window_size <= max_length:
            raise ConfigurationError("window_size must be in (0, max_length]")
        if not 0 <= window_overlap < window_size:
            raise ConfigurationError("window_overlap must be in [0, window_size)")
        self._scorer = scorer
        self._max_length = max_length
        self._window_size = window_size
        self._window_overlap = window_overlap

    async def rerank(self, query: str, candidates: list[SearchResult]) -> list[RerankResult]:
        """Score every candidate and return them by descending score (stable)."""
        reranked: list[RerankResult] = []
        for candidate in candidates:
            try:
                score = await self._score_passage(query, candidate.text)
            except Exception as exc:
                raise RerankError(
                    message=f"Failed reranking candidate {candidate.chunk_id}: {exc}",
                    provider_name=self._scorer.get_provider_name(),
                ) from exc
            reranked.append(RerankResult.from_search_result(candidate, score))

        reranked.sort(key=lambda r: r.score, reverse=True)
        logger.info("rerank_complete", candidates=len(reranked))
        return reranked

    async def _score_passage(self, query: str, passage: str) -> float:
        input_ids, attention_mask, token_type_ids = await self._scorer.encode_pair(
            query, passage
        )
        total = len(input_ids)

        if total <= self._max_length:
            return await self._scorer.score(*self._pad(input_ids, attention_mask, token_type_ids))

        best = -math.inf
        step = self._window_size - self._window_overlap
        windows = 0
        for start in range(0, total, step):
            end = min(start + self._window_size, total)
            score = await self._scorer.score(
                *self._pad(
                    input_ids[start:end],
                    attention_mask[start:end],
                    token_type_ids[start:end],
                )
            )
            best = max(best, score)
            windows += 1
            if end == total:
                break

        logger.debug("rerank_windowed", tokens=total, windows=windows, best=best)
        return best

    def _pad(
        self,
        input_ids: list[int],
        attention_mask: list[int],
        token_type_ids: list[int],
    ) -> tuple[list[int], list[int], list[int]]:
        """Right-pad a window to ``max_length``: pad token ids, zero mask and zero types."""
        missing = self._max_length - len(input_ids)
        if missing <= 0:
            return list(input_ids), list(attention_mask), list(token_type_ids)
        pad_id = self._scorer.get_pad_token_id()
        return (
            list(input_ids) + [pad_id] * missing,
            list(attention_mask) + [0] * missing,
            list(token_type_ids) + [0] * missing,
        )
