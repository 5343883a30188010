"""Vector storage backends."""

from kb_engine.boundary.vdb.memory_store import InMemoryVectorStore
from kb_engine.boundary.vdb.sql_store import SQLVectorStore
from kb_engine.boundary.vdb.vector_schemas import (
    ChunkMetadata,
    ChunkRecord,
    ChunkRef,
    VectorSearchResult,
)
from kb_engine.boundary.vdb.vector_store import VectorStore

__all__ = [
    "ChunkMetadata",
    "ChunkRecord",
    "ChunkRef",
    "InMemoryVectorStore",
    "SQLVectorStore",
    "VectorSearchResult",
    "VectorStore",
]
