"""Service orchestrators."""

from .ingestion_service import IngestionService
from .knowledge_base_service import KnowledgeBaseService
from .parsing_job_service import ParsingJobService
from .parsing_worker import ParsingJobProcessor
from .retrieval_service import RetrievalService

__all__ = [
    "IngestionService",
    "KnowledgeBaseService",
    "ParsingJobService",
    "ParsingJobProcessor",
    "RetrievalService",
]
