"""
Knowledge base service.

Ownership checks, source document listing and deletion, orphan chunk
cleanup and usage stats for knowledge bases.

Dependencies: kb_engine.boundary.db, kb_engine.boundary.vdb
System role: Knowledge base maintenance orchestration
"""

import logging
from collections import Counter
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kb_engine.boundary.db.CRUD.knowledge_base_crud import knowledge_base_crud
from kb_engine.boundary.db.CRUD.source_document_crud import source_document_crud
from kb_engine.boundary.db.models.knowledge_base_model import KnowledgeBaseModel
from kb_engine.boundary.ledger.credit_ledger import CreditLedger
from kb_engine.boundary.vdb.vector_store import VectorStore
from kb_engine.configs.plans import PlanSettings
from kb_engine.core.exceptions import (
    KnowledgeBaseAccessError,
    KnowledgeBaseNotFoundError,
    SourceDocumentNotFoundError,
    VectorStoreError,
)
from kb_engine.models.knowledge_base import (
    CleanupResult,
    DeleteSourceDocumentResult,
    KnowledgeBaseStats,
    SourceDocumentList,
    SourceDocumentSummary,
)

logger = logging.getLogger(__name__)


class KnowledgeBaseService:
    """Knowledge base ownership and maintenance."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        vector_store: VectorStore,
        ledger: CreditLedger,
        plans: PlanSettings,
    ) -> None:
        """
        Initialize knowledge base service.

        Args:
            session_factory: Factory for relational sessions
            vector_store: Chunk storage
            ledger: Credit ledger, used for plan lookup
            plans: Plan size limits
        """
        self.session_factory = session_factory
        self.vector_store = vector_store
        self.ledger = ledger
        self.plans = plans

    async def authorize(self, account_id: str, knowledge_base_id: UUID) -> KnowledgeBaseModel:
        """
        Load a knowledge base and check the caller owns it.

        Raises:
            KnowledgeBaseNotFoundError: If it does not exist
            KnowledgeBaseAccessError: If another account owns it
        """
        async with self.session_factory() as session:
            kb = await knowledge_base_crud.get_by_id(session, knowledge_base_id)
        if kb is None:
            raise KnowledgeBaseNotFoundError(str(knowledge_base_id))
        if kb.account_id != account_id:
            logger.warning(
                f"{__name__}:authorize - account={account_id} denied on kb={knowledge_base_id}"
            )
            raise KnowledgeBaseAccessError(str(knowledge_base_id), account_id)
        return kb

    async def delete_source_document(
        self,
        knowledge_base_id: UUID,
        source_document_id: UUID,
    ) -> DeleteSourceDocumentResult:
        """
        Delete a source document, its chunks, and release its size.

        The relational record goes first; if chunk deletion then fails the
        leftover chunks are orphans and are removed by cleanup_orphans.

        Raises:
            SourceDocumentNotFoundError: If the document is not in this knowledge base
        """
        async with self.session_factory() as session, session.begin():
            doc = await source_document_crud.get_by_id(session, source_document_id)
            if doc is None or doc.knowledge_base_id != knowledge_base_id:
                raise SourceDocumentNotFoundError(str(source_document_id))
            await source_document_crud.delete_by_id(session, source_document_id)
            await knowledge_base_crud.release_content_size(session, knowledge_base_id, doc.size_bytes)

        try:
            deleted = await self.vector_store.delete_by_source_document(
                knowledge_base_id, source_document_id
            )
        except VectorStoreError as e:
            logger.error(
                f"{__name__}:delete_source_document - Chunks of {source_document_id} "
                f"left for cleanup: {e}"
            )
            deleted = 0

        logger.info(
            f"{__name__}:delete_source_document - doc={source_document_id} chunks_deleted={deleted}"
        )
        return DeleteSourceDocumentResult(
            source_document_id=source_document_id,
            chunks_deleted=deleted,
        )

    async def list_source_documents(self, knowledge_base_id: UUID) -> SourceDocumentList:
        """
        Source documents with at least one indexed chunk, newest first.

        A document whose content was entirely skipped as duplicate has no
        chunks and is left out.

        Args:
            knowledge_base_id: Knowledge base to list

        Returns:
            SourceDocumentList: title, type and chunk count per document
        """
        async with self.session_factory() as session:
            docs = await source_document_crud.get_by_knowledge_base(session, knowledge_base_id)
        refs = await self.vector_store.list_chunk_refs(knowledge_base_id)
        counts = Counter(ref.source_document_id for ref in refs)

        documents = [
            SourceDocumentSummary(
                source_document_id=doc.id,
                title=doc.title,
                source_type=doc.source_type,
                chunk_count=counts[doc.id],
                size_bytes=doc.size_bytes,
                created_at=doc.created_at,
            )
            for doc in docs
            if counts[doc.id] > 0
        ]
        logger.info(
            f"{__name__}:list_source_documents - kb={knowledge_base_id} listed={len(documents)} "
            f"hidden={len(docs) - len(documents)}"
        )
        return SourceDocumentList(knowledge_base_id=knowledge_base_id, documents=documents)

    async def cleanup_orphans(self, knowledge_base_id: UUID) -> CleanupResult:
        """
        Remove chunks whose source document no longer exists.

        Chunks whose source document is present are never touched.

        Returns:
            CleanupResult: scanned, valid and removed chunk counts
        """
        refs = await self.vector_store.list_chunk_refs(knowledge_base_id)
        async with self.session_factory() as session:
            valid_ids = await source_document_crud.get_ids_by_knowledge_base(
                session, knowledge_base_id
            )

        orphans = [ref.chunk_id for ref in refs if ref.source_document_id not in valid_ids]
        removed = await self.vector_store.delete_chunks(orphans) if orphans else 0

        if removed:
            logger.info(
                f"{__name__}:cleanup_orphans - kb={knowledge_base_id} removed={removed} "
                f"of scanned={len(refs)}"
            )
        return CleanupResult(
            knowledge_base_id=knowledge_base_id,
            scanned=len(refs),
            valid=len(refs) - len(orphans),
            removed=removed,
            source_documents=len(valid_ids),
        )

    async def cleanup_all(self) -> list[CleanupResult]:
        """Run orphan cleanup over every knowledge base that holds chunks."""
        results = []
        for knowledge_base_id in await self.vector_store.list_knowledge_base_ids():
            try:
                results.append(await self.cleanup_orphans(knowledge_base_id))
            except VectorStoreError as e:
                logger.error(f"{__name__}:cleanup_all - kb={knowledge_base_id} skipped: {e}")
        return results

    async def get_stats(self, knowledge_base_id: UUID) -> KnowledgeBaseStats:
        """
        Chunk counts and size usage.

        Raises:
            KnowledgeBaseNotFoundError: If the knowledge base does not exist
        """
        async with self.session_factory() as session:
            kb = await knowledge_base_crud.get_by_id(session, knowledge_base_id)
            if kb is None:
                raise KnowledgeBaseNotFoundError(str(knowledge_base_id))
            doc_ids = await source_document_crud.get_ids_by_knowledge_base(
                session, knowledge_base_id
            )

        by_type = await self.vector_store.count_by_source_type(knowledge_base_id)
        plan = await self.ledger.get_plan(kb.account_id)
        return KnowledgeBaseStats(
            knowledge_base_id=knowledge_base_id,
            total_chunks=sum(by_type.values()),
            chunks_by_source_type=by_type,
            source_documents=len(doc_ids),
            content_size_bytes=kb.content_size_bytes,
            max_content_size_bytes=self.plans.max_context_size_bytes(plan),
        )
