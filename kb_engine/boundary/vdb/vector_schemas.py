"""
Pydantic schemas for vector store operations.

Defines data structures for chunk metadata, stored chunk records,
and ranked search results.

Dependencies: pydantic
System role: Vector store data contracts
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from kb_engine.models.source import SourceType


class ChunkMetadata(BaseModel):
    """Metadata stored alongside each chunk vector."""

    source_document_id: UUID
    source_type: SourceType
    title: str
    chunk_index: int
    total_chunks: int
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    extra: dict[str, Any] = Field(default_factory=dict)


class ChunkRecord(BaseModel):
    """Chunk ready to be written to the vector store."""

    chunk_id: str
    knowledge_base_id: UUID
    content: str
    vector: list[float]
    metadata: ChunkMetadata


class ChunkRef(BaseModel):
    """Lightweight pointer used by orphan cleanup."""

    chunk_id: str
    source_document_id: UUID


class VectorSearchResult(BaseModel):
    """Search result from vector similarity query."""

    chunk_id: str
    content: str
    score: float = Field(..., ge=-1.0, le=1.0)
    metadata: ChunkMetadata
