"""Cross-encoder reranking."""

from docqa.services.rerank.windowed_reranker import WindowedReranker

__all__ = ["WindowedReranker"]
