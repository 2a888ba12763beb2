"""Hybrid retrieval."""

from docqa.services.retrieval.hybrid_retriever import HybridRetriever

__all__ = ["HybridRetriever"]
