"""FastAPI dependency providers."""

from kb_engine.api.deps.dependencies import (
    get_current_account_id,
    get_ingestion_service,
    get_knowledge_base_service,
    get_parsing_job_service,
    get_retrieval_service,
    get_service_cache,
)

__all__ = [
    "get_current_account_id",
    "get_ingestion_service",
    "get_knowledge_base_service",
    "get_parsing_job_service",
    "get_retrieval_service",
    "get_service_cache",
]
