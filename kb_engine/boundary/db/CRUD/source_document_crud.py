"""
Source document CRUD operations.

Source documents are the parent records that chunks point at; their ids
decide which chunks are valid during orphan cleanup, and their listing
backs the per-knowledge-base document index.

Dependencies: sqlalchemy, kb_engine.boundary.db.models
System role: Source document persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kb_engine.boundary.db.CRUD.base_crud import BaseCRUD
from kb_engine.boundary.db.models.source_document_model import SourceDocumentModel


class SourceDocumentCRUD(BaseCRUD[SourceDocumentModel]):
    """CRUD operations for SourceDocumentModel."""

    def __init__(self) -> None:
        super().__init__(SourceDocumentModel)

    async def get_ids_by_knowledge_base(
        self,
        session: AsyncSession,
        knowledge_base_id: UUID,
    ) -> set[UUID]:
        """
        Ids of every source document in a knowledge base.

        Args:
            session: Async database session
            knowledge_base_id: Parent knowledge base UUID

        Returns:
            Set of source document UUIDs
        """
        stmt = select(SourceDocumentModel.id).where(
            SourceDocumentModel.knowledge_base_id == knowledge_base_id
        )
        result = await session.execute(stmt)
        return set(result.scalars().all())


    async def get_by_knowledge_base(
        self,
        session: AsyncSession,
        knowledge_base_id: UUID,
    ) -> Sequence[SourceDocumentModel]:
        """
        Retrieve the source documents of a knowledge base, newest first.

        Args:
            session: Async database session
            knowledge_base_id: Parent knowledge base UUID

        Returns:
            Sequence of SourceDocumentModels
        """
        stmt = (
            select(SourceDocumentModel)
            .where(SourceDocumentModel.knowledge_base_id == knowledge_base_id)
            .order_by(SourceDocumentModel.created_at.desc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()


source_document_crud = SourceDocumentCRUD()
