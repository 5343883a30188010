"""ORM models."""

from kb_engine.boundary.db.models.chunk_model import ChunkModel
from kb_engine.boundary.db.models.credit_account_model import CreditAccountModel
from kb_engine.boundary.db.models.knowledge_base_model import KnowledgeBaseModel
from kb_engine.boundary.db.models.parsing_job_model import (
    ALLOWED_PREDECESSORS,
    ParsingJobModel,
    ParsingJobStatus,
    ParsingMode,
)
from kb_engine.boundary.db.models.source_document_model import SourceDocumentModel

__all__ = [
    "ALLOWED_PREDECESSORS",
    "ChunkModel",
    "CreditAccountModel",
    "KnowledgeBaseModel",
    "ParsingJobModel",
    "ParsingJobStatus",
    "ParsingMode",
    "SourceDocumentModel",
]
