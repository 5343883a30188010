"""Embedding provider adapter."""

from kb_engine.core.embeddings.provider import EmbeddingProvider

__all__ = ["EmbeddingProvider"]
