"""Shared pytest fixtures for the docqa test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.fakes import CharTokenScorer, HashingEmbedder, InMemoryCatalog, RecordingLLM


@pytest.fixture
def embedder() -> HashingEmbedder:
    return HashingEmbedder()


@pytest.fixture
def scorer() -> CharTokenScorer:
    return CharTokenScorer()


@pytest.fixture
def catalog(tmp_path: Path) -> InMemoryCatalog:
    return InMemoryCatalog(tmp_path / "blobs")


@pytest.fixture
def llm() -> RecordingLLM:
    return RecordingLLM()


@pytest.fixture
def sample_text() -> str:
    """Twelve short sentences about dragons, each 48-55 characters long."""
    return " ".join(
        [
            "Dragons nest high in the northern volcanic mountains.",
            "Their eggs need constant heat to hatch properly.",
            "A dragon hatchling weighs about as much as a goat.",
            "Young dragons learn to fly during their second winter.",
            "Adult dragons can glide for hours on warm air currents.",
            "Most dragons avoid the cold southern marshes entirely.",
            "Scholars disagree about how dragons breathe fire.",
            "One theory credits a gland that stores volatile oils.",
            "Another theory points to sparks from grinding teeth.",
            "Dragon scales shed every seven years in early spring.",
            "Shed scales are prized by smiths for forging armour.",
            "No dragon has been sighted near the capital since 1820.",
        ]
    )
