"""
Dependency injection container.

Factory functions for FastAPI dependencies. Services come from one
process-wide ServiceContainer; tests replace it through
app.dependency_overrides[get_service_cache].

Dependencies: fastapi, kb_engine.application
System role: DI container for service injection
"""

from fastapi import Depends, Header, HTTPException

from kb_engine.application.container import ServiceContainer
from kb_engine.application.services import (
    IngestionService,
    KnowledgeBaseService,
    ParsingJobService,
    RetrievalService,
)

_service_cache: ServiceContainer | None = None


def get_service_cache() -> ServiceContainer:
    """Get service container singleton."""
    global _service_cache
    if _service_cache is None:
        _service_cache = ServiceContainer()
    return _service_cache


async def reset_service_cache() -> None:
    """Dispose and forget the singleton (application shutdown)."""
    global _service_cache
    if _service_cache is not None:
        await _service_cache.dispose()
        _service_cache = None


def get_current_account_id(x_account_id: str | None = Header(default=None)) -> str:
    """
    Account making the request, from the X-Account-ID header.

    Raises:
        HTTPException(401): Header missing or blank
    """
    if not x_account_id or not x_account_id.strip():
        raise HTTPException(status_code=401, detail="X-Account-ID header is required")
    return x_account_id.strip()


def get_ingestion_service(
    cache: ServiceContainer = Depends(get_service_cache),
) -> IngestionService:
    return cache.ingestion_service


def get_knowledge_base_service(
    cache: ServiceContainer = Depends(get_service_cache),
) -> KnowledgeBaseService:
    return cache.knowledge_base_service


def get_parsing_job_service(
    cache: ServiceContainer = Depends(get_service_cache),
) -> ParsingJobService:
    return cache.parsing_job_service


def get_retrieval_service(
    cache: ServiceContainer = Depends(get_service_cache),
) -> RetrievalService:
    return cache.retrieval_service
