"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), create_schema(): Connection management
  - ORM models and status enums
  - CRUD singletons

Dependencies: sqlalchemy, kb_engine.configs
System role: Persistent storage for knowledge bases, source documents,
chunks, parsing jobs and credit accounts.
"""

from kb_engine.boundary.db.base import Base, TimestampMixin, UUIDMixin
from kb_engine.boundary.db.connection import (
    create_schema,
    get_async_engine,
    get_async_session_factory,
)
from kb_engine.boundary.db.models import (
    ChunkModel,
    CreditAccountModel,
    KnowledgeBaseModel,
    ParsingJobModel,
    ParsingJobStatus,
    ParsingMode,
    SourceDocumentModel,
)
from kb_engine.boundary.db.CRUD import (
    BaseCRUD,
    knowledge_base_crud,
    parsing_job_crud,
    source_document_crud,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "create_schema",
    "get_async_engine",
    "get_async_session_factory",
    "ChunkModel",
    "CreditAccountModel",
    "KnowledgeBaseModel",
    "ParsingJobModel",
    "ParsingJobStatus",
    "ParsingMode",
    "SourceDocumentModel",
    "BaseCRUD",
    "knowledge_base_crud",
    "parsing_job_crud",
    "source_document_crud",
]
