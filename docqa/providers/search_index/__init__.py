"""Search index backends."""

from docqa.providers.search_index.memory_index import InMemorySearchIndex

__all__ = ["InMemorySearchIndex"]
