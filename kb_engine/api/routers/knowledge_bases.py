"""
Knowledge base API endpoints.

Routes:
    POST   /knowledge-bases/{kb_id}/documents
    GET    /knowledge-bases/{kb_id}/documents
    GET    /knowledge-bases/{kb_id}/size-check
    DELETE /knowledge-bases/{kb_id}/documents/{doc_id}
    GET    /knowledge-bases/{kb_id}/stats
    POST   /knowledge-bases/{kb_id}/cleanup
    POST   /knowledge-bases/{kb_id}/query

Every route requires the X-Account-ID header of the owning account.

Dependencies: fastapi, kb_engine.application.services, kb_engine.models
System role: Knowledge base HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from kb_engine.api.deps import (
    get_current_account_id,
    get_ingestion_service,
    get_knowledge_base_service,
    get_retrieval_service,
)
from kb_engine.api.routers.router_utils import to_http_exception
from kb_engine.application.services import (
    IngestionService,
    KnowledgeBaseService,
    RetrievalService,
)
from kb_engine.core.exceptions import KnowledgeEngineException
from kb_engine.models.ingestion import IngestRequest, IngestionResult, SizeLimitCheck
from kb_engine.models.knowledge_base import (
    CleanupResult,
    DeleteSourceDocumentResult,
    KnowledgeBaseStats,
    SourceDocumentList,
)
from kb_engine.models.query import QueryRequest, QueryResponse

router = APIRouter(prefix="/knowledge-bases", tags=["knowledge-bases"])

_INGEST_FAILURE_STATUS = {
    "validation": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "plan_limit": status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
}


@router.post(
    "/{kb_id}/documents",
    response_model=IngestionResult,
    status_code=status.HTTP_201_CREATED,
)
async def ingest_document(
    kb_id: UUID,
    request: IngestRequest,
    account_id: str = Depends(get_current_account_id),
    knowledge_bases: KnowledgeBaseService = Depends(get_knowledge_base_service),
    ingestion: IngestionService = Depends(get_ingestion_service),
) -> IngestionResult:
    """
    Chunk, embed and store text in a knowledge base.

    Near-duplicate chunks are skipped and reported in chunks_skipped.

    Raises:
        HTTPException(400): Empty content
        HTTPException(403): Knowledge base owned by another account
        HTTPException(404): Knowledge base not found
        HTTPException(413): Plan size limit would be exceeded
    """
    try:
        await knowledge_bases.authorize(account_id, kb_id)
        result = await ingestion.ingest(
            kb_id,
            request.content,
            source=request.source,
            source_label=request.source_label,
        )
    except KnowledgeEngineException as e:
        raise to_http_exception(e) from e

    if not result.success:
        raise HTTPException(
            status_code=_INGEST_FAILURE_STATUS.get(result.error_code, 400),
            detail={"error": result.error_code, "message": result.error, "details": {}},
        )
    return result


@router.get("/{kb_id}/size-check", response_model=SizeLimitCheck)
async def check_size_limit(
    kb_id: UUID,
    size_bytes: int = Query(..., ge=0),
    account_id: str = Depends(get_current_account_id),
    knowledge_bases: KnowledgeBaseService = Depends(get_knowledge_base_service),
    ingestion: IngestionService = Depends(get_ingestion_service),
) -> SizeLimitCheck:
    """Whether size_bytes more content fits within the plan limit."""
    try:
        await knowledge_bases.authorize(account_id, kb_id)
        return await ingestion.check_size_limit(kb_id, size_bytes)
    except KnowledgeEngineException as e:
        raise to_http_exception(e) from e


@router.get("/{kb_id}/documents", response_model=SourceDocumentList)
async def list_source_documents(
    kb_id: UUID,
    account_id: str = Depends(get_current_account_id),
    knowledge_bases: KnowledgeBaseService = Depends(get_knowledge_base_service),
) -> SourceDocumentList:
    """List source documents that have indexed chunks, newest first."""
    try:
        await knowledge_bases.authorize(account_id, kb_id)
        return await knowledge_bases.list_source_documents(kb_id)
    except KnowledgeEngineException as e:
        raise to_http_exception(e) from e


@router.delete("/{kb_id}/documents/{doc_id}", response_model=DeleteSourceDocumentResult)
async def delete_source_document(
    kb_id: UUID,
    doc_id: UUID,
    account_id: str = Depends(get_current_account_id),
    knowledge_bases: KnowledgeBaseService = Depends(get_knowledge_base_service),
) -> DeleteSourceDocumentResult:
    """Delete a source document and all of its chunks."""
    try:
        await knowledge_bases.authorize(account_id, kb_id)
        return await knowledge_bases.delete_source_document(kb_id, doc_id)
    except KnowledgeEngineException as e:
        raise to_http_exception(e) from e


@router.get("/{kb_id}/stats", response_model=KnowledgeBaseStats)
async def get_stats(
    kb_id: UUID,
    account_id: str = Depends(get_current_account_id),
    knowledge_bases: KnowledgeBaseService = Depends(get_knowledge_base_service),
) -> KnowledgeBaseStats:
    """Chunk counts per source type and size usage."""
    try:
        await knowledge_bases.authorize(account_id, kb_id)
        return await knowledge_bases.get_stats(kb_id)
    except KnowledgeEngineException as e:
        raise to_http_exception(e) from e


@router.post("/{kb_id}/cleanup", response_model=CleanupResult)
async def cleanup_orphans(
    kb_id: UUID,
    account_id: str = Depends(get_current_account_id),
    knowledge_bases: KnowledgeBaseService = Depends(get_knowledge_base_service),
) -> CleanupResult:
    """Remove chunks whose source document no longer exists."""
    try:
        await knowledge_bases.authorize(account_id, kb_id)
        return await knowledge_bases.cleanup_orphans(kb_id)
    except KnowledgeEngineException as e:
        raise to_http_exception(e) from e


@router.post("/{kb_id}/query", response_model=QueryResponse)
async def query_knowledge_base(
    kb_id: UUID,
    request: QueryRequest,
    account_id: str = Depends(get_current_account_id),
    retrieval: RetrievalService = Depends(get_retrieval_service),
) -> QueryResponse:
    """
    Query a knowledge base.

    fast: ranked chunks (1 credit). accurate: ranked chunks plus a
    synthesized answer (2 credits). Queries that find nothing are free.
    Results are eventually consistent with ingestion still in progress.

    Raises:
        HTTPException(400): Empty query or top_k out of range
        HTTPException(402): Insufficient credits
        HTTPException(403): Knowledge base owned by another account
        HTTPException(404): Knowledge base not found
        HTTPException(503): Embedding, store or synthesis unavailable
    """
    try:
        return await retrieval.query(
            account_id,
            kb_id,
            request.query,
            mode=request.mode,
            top_k=request.top_k,
            source_document_id=request.source_document_id,
        )
    except KnowledgeEngineException as e:
        raise to_http_exception(e) from e
