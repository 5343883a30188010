"""
Query request/response schemas.

Dependencies: pydantic
System role: API models for knowledge base queries
"""

import enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class QueryMode(str, enum.Enum):
    """FAST returns ranked chunks; ACCURATE adds a synthesized answer."""

    FAST = "fast"
    ACCURATE = "accurate"


class QueryRequest(BaseModel):
    """Query against one knowledge base."""

    query: str = Field(..., min_length=1, description="Natural language query")
    mode: QueryMode = Field(default=QueryMode.FAST)
    top_k: int | None = Field(default=None, ge=1, description="Number of chunks to return")
    source_document_id: UUID | None = Field(
        default=None,
        description="Restrict results to one source document",
    )


class QueryResultItem(BaseModel):
    """One ranked chunk."""

    content: str
    score: float
    metadata: dict[str, Any]


class QueryResponse(BaseModel):
    """Ranked results plus, in accurate mode, an answer."""

    mode: QueryMode
    results: list[QueryResultItem]
    answer: str | None = None
    credits_used: int
    processing_time_ms: float
