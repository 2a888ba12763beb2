"""docqa: question answering over private documents.

Documents are cleaned, split into page-annotated overlapping chunks,
embedded and indexed; questions are answered by hybrid retrieval, windowed
cross-encoder reranking and an LLM, with page-range citations.
"""

__version__ = "0.1.0"
