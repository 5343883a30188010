"""
Chunk ORM model.

Stores chunk text, its embedding vector and metadata. The integer primary
key doubles as the insertion sequence used to order equal-score results.
source_document_id has no foreign key: chunks can outlive their source
document and are then removed by orphan cleanup.

Dependencies: sqlalchemy, kb_engine.boundary.db.base
System role: Vector store persistence for the SQL backend
"""

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Enum, Integer, JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from kb_engine.boundary.db.base import Base, utcnow
from kb_engine.models.source import SourceType


class ChunkModel(Base):
    """
    Embedded chunk record.

    Attributes:
        sequence: Auto-incrementing primary key, insertion order
        chunk_id: Public chunk identifier (unique)
        knowledge_base_id: Deduplication and search scope (indexed)
        source_document_id: Source document the chunk came from (indexed)
        source_type: Variant tag of the source document
        title: Source document title
        content: Chunk text
        vector: Embedding as a JSON float array
        chunk_index: Position of the chunk within its source
        total_chunks: Number of chunks produced from the source
        extra: Additional metadata
        created_at: Insertion timestamp (UTC)
    """

    __tablename__ = "chunks"

    sequence: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    chunk_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    knowledge_base_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )
    source_document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )
    source_type: Mapped[SourceType] = mapped_column(
        Enum(SourceType, native_enum=False),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False)
    vector: Mapped[list] = mapped_column(JSON, nullable=False)
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    total_chunks: Mapped[int] = mapped_column(Integer, nullable=False)
    extra: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
