"""Text chunking."""

from kb_engine.core.chunking.chunker import TextChunker
from kb_engine.core.chunking.enrichment import build_indexable_text, resolve_title

__all__ = ["TextChunker", "build_indexable_text", "resolve_title"]
