"""
Source document ORM model.

One unit of submitted content (file text, scraped link, free text, Q&A
pair, or parsing job output). Owns the chunks derived from it.

Dependencies: sqlalchemy, kb_engine.boundary.db.base
System role: Context unit persistence
"""

import uuid

from sqlalchemy import Enum, Integer, JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from kb_engine.boundary.db.base import Base, TimestampMixin, UUIDMixin
from kb_engine.models.source import SourceType


class SourceDocumentModel(Base, UUIDMixin, TimestampMixin):
    """
    Source document record.

    Attributes:
        id: UUID primary key
        knowledge_base_id: Owning knowledge base (indexed)
        source_type: Variant tag of the payload
        title: Display title
        size_bytes: UTF-8 size of the submitted content, before chunking
        payload: Typed source payload serialized as JSON
    """

    __tablename__ = "source_documents"

    knowledge_base_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
    )
    source_type: Mapped[SourceType] = mapped_column(
        Enum(SourceType, native_enum=False),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    size_bytes: Mapped[int] = mapped_column(Integer, nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
