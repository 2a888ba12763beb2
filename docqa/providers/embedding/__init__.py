"""Embedding provider implementations."""

from docqa.providers.embedding.fastembed_embedding_provider import FastEmbedEmbeddingProvider
from docqa.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["FastEmbedEmbeddingProvider", "OpenAIEmbeddingProvider"]
