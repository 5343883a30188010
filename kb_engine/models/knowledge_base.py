"""
Knowledge base maintenance schemas.

Dependencies: pydantic
System role: API models for cleanup, deletion, listing and stats
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from kb_engine.models.source import SourceType


class CleanupResult(BaseModel):
    """Orphan cleanup counts for one knowledge base."""

    knowledge_base_id: UUID
    scanned: int
    valid: int
    removed: int
    source_documents: int


class DeleteSourceDocumentResult(BaseModel):
    """Result of deleting a source document."""

    source_document_id: UUID
    chunks_deleted: int


class KnowledgeBaseStats(BaseModel):
    """Chunk and size usage of a knowledge base."""

    knowledge_base_id: UUID
    total_chunks: int
    chunks_by_source_type: dict[str, int]
    source_documents: int
    content_size_bytes: int
    max_content_size_bytes: int


class SourceDocumentSummary(BaseModel):
    """Listing row for one source document with indexed chunks."""

    source_document_id: UUID
    title: str
    source_type: SourceType
    chunk_count: int
    size_bytes: int
    created_at: datetime


class SourceDocumentList(BaseModel):
    """Source documents of a knowledge base, newest first."""

    knowledge_base_id: UUID
    documents: list[SourceDocumentSummary]
