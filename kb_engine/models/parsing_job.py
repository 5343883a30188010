"""
Parsing job schemas.

Dependencies: pydantic
System role: API models for parse submission, estimation and polling
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from kb_engine.boundary.db.models.parsing_job_model import ParsingJobStatus, ParsingMode


class CostEstimate(BaseModel):
    """Credits a parse would cost."""

    file_name: str
    mode: ParsingMode
    page_count: int
    credits_per_page: int
    credits_required: int


class ParsingJobSubmission(BaseModel):
    """Returned as soon as a job has been accepted and queued."""

    job_id: UUID
    status: ParsingJobStatus
    page_count: int
    credits_reserved: int
    remaining_balance: int


class ParsingJobStatusResponse(BaseModel):
    """
    Poll response.

    markdown, pages and processing_time_seconds are set once COMPLETED;
    error is set once FAILED.
    """

    job_id: UUID
    status: ParsingJobStatus
    file_name: str
    mode: ParsingMode
    credits_used: int
    pages: int | None = None
    processing_time_seconds: float | None = None
    markdown: str | None = None
    error: str | None = None
    source_document_id: UUID | None = None
    created_at: datetime
    completed_at: datetime | None = None


class ParsingJobSummary(BaseModel):
    """Row in a job listing."""

    job_id: UUID
    knowledge_base_id: UUID
    status: ParsingJobStatus
    file_name: str
    mode: ParsingMode
    page_count: int
    credits_reserved: int
    created_at: datetime
    completed_at: datetime | None = None


class ParsingJobList(BaseModel):
    jobs: list[ParsingJobSummary] = Field(default_factory=list)
