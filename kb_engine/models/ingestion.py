"""
Ingestion request/response schemas.

Dependencies: pydantic
System role: API models for text ingestion and size accounting
"""

from uuid import UUID

from pydantic import BaseModel, Field

from kb_engine.models.source import SourcePayload, TextSource


class IngestRequest(BaseModel):
    """Text submitted for indexing."""

    content: str = Field(..., min_length=1, description="Text to index")
    source_label: str | None = Field(
        default=None,
        max_length=500,
        description="Display title; a per-type fallback is used when omitted",
    )
    source: SourcePayload = Field(
        default_factory=TextSource,
        description="Typed source payload; its 'type' is the source type",
    )


class IngestionResult(BaseModel):
    """
    Outcome of one ingestion call.

    Counts are per chunk; a successful call may still report skipped
    duplicates and failed chunks.
    """

    success: bool
    source_document_id: UUID | None = None
    chunks_created: int = 0
    chunks_skipped: int = 0
    chunks_failed: int = 0
    total_chunks: int = 0
    error: str | None = None
    error_code: str | None = Field(
        default=None,
        description="validation | not_found | plan_limit when success is false",
    )


class SizeLimitCheck(BaseModel):
    """Whether content of a given size fits in a knowledge base."""

    can_add: bool
    current_bytes: int
    max_bytes: int
    remaining_bytes: int
