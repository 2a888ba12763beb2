"""Unit tests for WindowedReranker: padding, sliding windows and max-pooling."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from docqa.models.rag import SearchResult
from docqa.services.rerank.windowed_reranker import WindowedReranker
from docqa.utils.errors import ConfigurationError, RerankError
from tests.fakes import PAD_ID, CharTokenScorer, decode_window

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _candidate(chunk_id: str, text: str, score: float = 0.5) -> SearchResult:
    return SearchResult(
        doc_id="d1",
        chunk_id=chunk_id,
        text=text,
        from_page=2,
        to_page=3,
        score=score,
    )


def _make_reranker(scorer: CharTokenScorer) -> WindowedReranker:
    # Query "q" encodes to 3 tokens plus one per passage character plus [SEP].
    return WindowedReranker(scorer=scorer, max_length=32, window_size=24, window_overlap=4)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestValidation:
    @pytest.mark.parametrize(
        ("max_length", "window_size", "window_overlap"),
        [(0, 1, 0), (32, 0, 0), (32, 33, 0), (32, 24, 24), (32, 24, -1)],
    )
    def test_invalid_window_policy_rejected(
        self, max_length: int, window_size: int, window_overlap: int
    ) -> None:
        with pytest.raises(ConfigurationError):
            WindowedReranker(
                scorer=CharTokenScorer(),
                max_length=max_length,
                window_size=window_size,
                window_overlap=window_overlap,
            )


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


class TestShortPassages:
    @pytest.mark.asyncio
    async def test_single_window_padded_to_max_length(self) -> None:
        scorer = CharTokenScorer(positive_terms=("gold",))
        reranker = _make_reranker(scorer)

        (result,) = await reranker.rerank("q", [_candidate("c1", "gold")])

        assert result.score == 1.0
        assert len(scorer.windows) == 1
        ids, mask = scorer.windows[0]
        assert len(ids) == len(mask) == 32
        # [CLS] q [SEP] g o l d [SEP] = 8 real tokens.
        assert mask == [1] * 8 + [0] * 24
        assert ids[8:] == [PAD_ID] * 24
        # Query segment, passage segment, then zero-typed padding.
        assert scorer.token_types[0] == [0, 0, 0] + [1] * 5 + [0] * 24

    @pytest.mark.asyncio
    async def test_sorted_by_descending_score(self) -> None:
        scorer = CharTokenScorer(positive_terms=("gold", "silver"))
        reranker = _make_reranker(scorer)

        results = await reranker.rerank(
            "q",
            [
                _candidate("none", "iron"),
                _candidate("one", "gold"),
                _candidate("two", "gold silver"),
            ],
        )

        assert [r.chunk_id for r in results] == ["two", "one", "none"]
        assert [r.score for r in results] == [2.0, 1.0, -1.0]

    @pytest.mark.asyncio
    async def test_equal_scores_keep_input_order(self) -> None:
        reranker = _make_reranker(CharTokenScorer())

        results = await reranker.rerank(
            "q", [_candidate("a", "x"), _candidate("b", "y"), _candidate("c", "z")]
        )

        assert [r.chunk_id for r in results] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_every_candidate_kept_and_fields_copied(self) -> None:
        reranker = _make_reranker(CharTokenScorer())

        results = await reranker.rerank("q", [_candidate("a", "x"), _candidate("b", "y")])

        assert len(results) == 2
        assert all(r.score == -1.0 for r in results)
        assert (results[0].doc_id, results[0].from_page, results[0].to_page) == ("d1", 2, 3)

    @pytest.mark.asyncio
    async def test_empty_candidates(self) -> None:
        assert await _make_reranker(CharTokenScorer()).rerank("q", []) == []


class TestLongPassages:
    @pytest.mark.asyncio
    async def test_evidence_past_first_window_is_found(self) -> None:
        scorer = CharTokenScorer(positive_terms=("gold",))
        reranker = _make_reranker(scorer)
        passage = "x" * 56 + "gold"  # 64 tokens in total

        (result,) = await reranker.rerank("q", [_candidate("c1", passage)])

        assert result.score == 1.0
        # Windows start at 0, 20 and 40; the last one reaches the end.
        assert len(scorer.windows) == 3
        decoded = [decode_window(ids, mask) for ids, mask in scorer.windows]
        assert "gold" not in decoded[0]
        assert "gold" in decoded[-1]

    @pytest.mark.asyncio
    async def test_windows_are_padded_and_overlap(self) -> None:
        scorer = CharTokenScorer()
        reranker = _make_reranker(scorer)

        await reranker.rerank("q", [_candidate("c1", "abcdefghij" * 6)])

        for ids, mask in scorer.windows:
            assert len(ids) == len(mask) == 32
            assert mask[:24] == [1] * 24
            assert mask[24:] == [0] * 8
        first_ids, _ = scorer.windows[0]
        second_ids, _ = scorer.windows[1]
        assert first_ids[20:24] == second_ids[0:4]
        assert scorer.token_types[1] == [1] * 24 + [0] * 8

    @pytest.mark.asyncio
    async def test_score_is_max_over_windows(self) -> None:
        scorer = CharTokenScorer(positive_terms=("gold", "silver"))
        reranker = _make_reranker(scorer)
        # "silver" alone lands in the first window, "gold silver" in the last.
        passage = "silver" + "x" * 40 + "gold silver"

        (result,) = await reranker.rerank("q", [_candidate("c1", passage)])

        assert result.score == 2.0


class TestErrors:
    @pytest.mark.asyncio
    async def test_scorer_failure_raises_rerank_error(self) -> None:
        scorer = MagicMock()
        scorer.encode_pair = AsyncMock(return_value=([1, 20, 2], [1, 1, 1], [0, 0, 1]))
        scorer.get_pad_token_id.return_value = 0
        scorer.get_provider_name.return_value = "broken"
        scorer.score = AsyncMock(side_effect=RuntimeError("session closed"))
        reranker = WindowedReranker(scorer=scorer, max_length=8, window_size=8, window_overlap=2)

        with pytest.raises(RerankError) as exc_info:
            await reranker.rerank("q", [_candidate("c1", "p")])

        assert exc_info.value.provider_name == "broken"
        assert "c1" in str(exc_info.value)
