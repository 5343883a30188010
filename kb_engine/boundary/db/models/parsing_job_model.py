"""
Parsing job ORM model.

Tracks one credit-metered parse request from upload to terminal state.
Status only moves forward along PENDING -> UPLOADED -> PROCESSING and
then to exactly one of COMPLETED or FAILED.

Dependencies: sqlalchemy, kb_engine.boundary.db.base
System role: Async job tracking for document parsing
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, Float, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from kb_engine.boundary.db.base import Base, TimestampMixin, UUIDMixin


class ParsingMode(str, enum.Enum):
    """
    Parsing cost tiers.

    CHEAP: Plain text extraction
    STANDARD: Layout-aware extraction
    PREMIUM: Agentic extraction for complex layouts
    PREMIUM_PLUS: Highest fidelity extraction
    """

    CHEAP = "cheap"
    STANDARD = "standard"
    PREMIUM = "premium"
    PREMIUM_PLUS = "premium_plus"


class ParsingJobStatus(str, enum.Enum):
    """
    Parsing job execution states.

    PENDING: Row created, credits deducted, upload not yet stored
    UPLOADED: Raw file persisted in object storage
    PROCESSING: Handed to the background worker queue
    COMPLETED: Markdown produced and ingested
    FAILED: Terminal failure; reserved credits refunded
    """

    PENDING = "PENDING"
    UPLOADED = "UPLOADED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def rank(self) -> int:
        """Position in the state order; both terminal states share the last rank."""
        return _STATUS_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (ParsingJobStatus.COMPLETED, ParsingJobStatus.FAILED)


_STATUS_RANK = {
    ParsingJobStatus.PENDING: 0,
    ParsingJobStatus.UPLOADED: 1,
    ParsingJobStatus.PROCESSING: 2,
    ParsingJobStatus.COMPLETED: 3,
    ParsingJobStatus.FAILED: 3,
}

# Allowed predecessor states for each target state
ALLOWED_PREDECESSORS: dict[ParsingJobStatus, tuple[ParsingJobStatus, ...]] = {
    ParsingJobStatus.UPLOADED: (ParsingJobStatus.PENDING,),
    ParsingJobStatus.PROCESSING: (ParsingJobStatus.UPLOADED,),
    ParsingJobStatus.COMPLETED: (ParsingJobStatus.PROCESSING,),
    ParsingJobStatus.FAILED: (
        ParsingJobStatus.PENDING,
        ParsingJobStatus.UPLOADED,
        ParsingJobStatus.PROCESSING,
    ),
}


class ParsingJobModel(Base, UUIDMixin, TimestampMixin):
    """
    Parsing job record.

    Attributes:
        id: UUID primary key, also the object storage key component
        account_id: Account charged for the parse (indexed)
        knowledge_base_id: Knowledge base receiving the output
        file_name: Original upload file name
        file_size_bytes: Upload size
        mode: Parsing cost tier
        page_count: Counted or estimated pages
        credits_reserved: Credits deducted for this job (the reservation)
        status: Current state
        object_key: Object storage key of the raw upload
        result_markdown: Parsed output once COMPLETED
        processing_time_seconds: Worker wall time once COMPLETED
        source_document_id: Source document created from the output
        error_message: Failure reason once FAILED
        completed_at: Terminal transition timestamp
    """

    __tablename__ = "parsing_jobs"

    account_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    knowledge_base_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False)
    file_size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    mode: Mapped[ParsingMode] = mapped_column(Enum(ParsingMode, native_enum=False), nullable=False)
    page_count: Mapped[int] = mapped_column(Integer, nullable=False)
    credits_reserved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[ParsingJobStatus] = mapped_column(
        Enum(ParsingJobStatus, native_enum=False),
        nullable=False,
        default=ParsingJobStatus.PENDING,
    )
    object_key: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    result_markdown: Mapped[str | None] = mapped_column(Text, nullable=True)
    processing_time_seconds: Mapped[float | None] = mapped_column(Float, nullable=True)
    source_document_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
