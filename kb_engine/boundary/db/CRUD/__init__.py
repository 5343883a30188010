"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from kb_engine.boundary.db.CRUD import parsing_job_crud

    job = await parsing_job_crud.get_by_id(db, job_id)
"""

from kb_engine.boundary.db.CRUD.base_crud import BaseCRUD
from kb_engine.boundary.db.CRUD.knowledge_base_crud import (
    KnowledgeBaseCRUD,
    knowledge_base_crud,
)
from kb_engine.boundary.db.CRUD.parsing_job_crud import ParsingJobCRUD, parsing_job_crud
from kb_engine.boundary.db.CRUD.source_document_crud import (
    SourceDocumentCRUD,
    source_document_crud,
)

__all__ = [
    "BaseCRUD",
    "KnowledgeBaseCRUD",
    "knowledge_base_crud",
    "ParsingJobCRUD",
    "parsing_job_crud",
    "SourceDocumentCRUD",
    "source_document_crud",
]
