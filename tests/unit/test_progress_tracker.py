"""Unit tests for DocumentProgressTracker: counters, document hand-over and listeners."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from docqa.models.pipeline import ProgressStatus
from docqa.pipeline.progress_tracker import DocumentProgressTracker


def _pct(tracker: DocumentProgressTracker) -> tuple[int, int]:
    status = tracker.status()
    return status.total_percent, status.document_percent


# ---------------------------------------------------------------------------
# Counters
# ---------------------------------------------------------------------------


class TestCounters:
    def test_idle_tracker(self) -> None:
        assert _pct(DocumentProgressTracker()) == (0, 100)

    def test_single_document(self) -> None:
        tracker = DocumentProgressTracker()
        tracker.add_document(4)
        assert _pct(tracker) == (0, 0)

        tracker.step()
        tracker.step()
        assert _pct(tracker) == (50, 50)

        tracker.step(2)
        assert _pct(tracker) == (100, 100)

    def test_documents_consumed_in_order(self) -> None:
        tracker = DocumentProgressTracker()
        tracker.add_document(4)
        tracker.step(2)
        tracker.add_document(2)
        assert _pct(tracker) == (33, 50)

        tracker.step(2)
        assert _pct(tracker) == (66, 0)

        tracker.step()
        assert _pct(tracker) == (83, 50)

        tracker.step()
        assert _pct(tracker) == (100, 100)

    def test_multi_step_carries_into_next_document(self) -> None:
        tracker = DocumentProgressTracker()
        tracker.add_document(2)
        tracker.add_document(2)

        tracker.step(3)

        assert _pct(tracker) == (75, 50)

    def test_step_without_document_is_ignored(self) -> None:
        tracker = DocumentProgressTracker()
        tracker.step()
        assert _pct(tracker) == (0, 100)

        tracker.add_document(1)
        tracker.step(5)
        assert _pct(tracker) == (100, 100)

    def test_empty_documents_are_skipped(self) -> None:
        tracker = DocumentProgressTracker()
        tracker.add_document(0)
        tracker.add_document(2)
        tracker.add_document(0)
        tracker.add_document(2)

        tracker.step()
        assert _pct(tracker) == (25, 50)

        tracker.step()
        # The empty third document is skipped; the fourth is current.
        assert _pct(tracker) == (50, 0)

    def test_negative_chunk_count_rejected(self) -> None:
        with pytest.raises(ValueError):
            DocumentProgressTracker().add_document(-1)

    def test_percentages_stay_in_range(self) -> None:
        tracker = DocumentProgressTracker()
        for count in (3, 7, 1):
            tracker.add_document(count)
        for _ in range(20):
            tracker.step()
            total, document = _pct(tracker)
            assert 0 <= total <= 100
            assert 0 <= document <= 100


# ---------------------------------------------------------------------------
# Listeners
# ---------------------------------------------------------------------------


class TestListener:
    def test_listener_receives_each_step(self) -> None:
        seen: list[ProgressStatus] = []
        tracker = DocumentProgressTracker(listener=seen.append)
        tracker.add_document(2)

        tracker.step()
        tracker.step()

        assert [(s.total_percent, s.document_percent) for s in seen] == [(50, 50), (100, 100)]

    def test_adding_a_document_does_not_notify(self) -> None:
        listener = MagicMock()
        tracker = DocumentProgressTracker(listener=listener)

        tracker.add_document(3)

        listener.assert_not_called()

    def test_ineffective_step_does_not_notify(self) -> None:
        listener = MagicMock()
        tracker = DocumentProgressTracker(listener=listener)

        tracker.step()

        listener.assert_not_called()

    def test_multi_step_notifies_once(self) -> None:
        listener = MagicMock()
        tracker = DocumentProgressTracker(listener=listener)
        tracker.add_document(5)

        tracker.step(3)

        listener.assert_called_once_with(ProgressStatus(total_percent=60, document_percent=60))

    def test_set_listener_replaces_and_disables(self) -> None:
        first = MagicMock()
        second = MagicMock()
        tracker = DocumentProgressTracker(listener=first)
        tracker.add_document(3)

        tracker.set_listener(second)
        tracker.step()
        tracker.set_listener(None)
        tracker.step()

        first.assert_not_called()
        second.assert_called_once()

    def test_failing_listener_does_not_stop_progress(self) -> None:
        listener = MagicMock(side_effect=RuntimeError("ui closed"))
        tracker = DocumentProgressTracker(listener=listener)
        tracker.add_document(2)

        tracker.step()
        tracker.step()

        assert listener.call_count == 2
        assert _pct(tracker) == (100, 100)
