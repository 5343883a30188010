"""
Knowledge base CRUD operations.

Adds conditional size accounting on top of BaseCRUD: the content size
counter is only increased when the result stays within the plan limit,
in a single UPDATE so concurrent submissions cannot overshoot it.

Dependencies: sqlalchemy, kb_engine.boundary.db.models
System role: Knowledge base ownership lookup and size accounting
"""

from uuid import UUID

from sqlalchemy import case, update
from sqlalchemy.ext.asyncio import AsyncSession

from kb_engine.boundary.db.CRUD.base_crud import BaseCRUD
from kb_engine.boundary.db.models.knowledge_base_model import KnowledgeBaseModel


class KnowledgeBaseCRUD(BaseCRUD[KnowledgeBaseModel]):
    """CRUD operations for KnowledgeBaseModel."""

    def __init__(self) -> None:
        """Initialize KnowledgeBaseCRUD with KnowledgeBaseModel."""
        super().__init__(KnowledgeBaseModel)

    async def try_add_content_size(
        self,
        session: AsyncSession,
        id: UUID,
        size_bytes: int,
        limit_bytes: int,
    ) -> bool:
        """
        Increase the content size counter if it stays within the limit.

        Args:
            session: Async database session
            id: Knowledge base UUID
            size_bytes: Bytes being added
            limit_bytes: Plan limit in bytes

        Returns:
            True if the counter was increased, False if the limit would be exceeded
        """
        stmt = (
            update(KnowledgeBaseModel)
            .where(KnowledgeBaseModel.id == id)
            .where(KnowledgeBaseModel.content_size_bytes + size_bytes <= limit_bytes)
            .values(content_size_bytes=KnowledgeBaseModel.content_size_bytes + size_bytes)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    async def release_content_size(
        self,
        session: AsyncSession,
        id: UUID,
        size_bytes: int,
    ) -> None:
        """
        Decrease the content size counter, flooring at zero.

        Args:
            session: Async database session
            id: Knowledge base UUID
            size_bytes: Bytes being released
        """
        remaining = KnowledgeBaseModel.content_size_bytes - size_bytes
        stmt = (
            update(KnowledgeBaseModel)
            .where(KnowledgeBaseModel.id == id)
            .values(content_size_bytes=case((remaining < 0, 0), else_=remaining))
            .execution_options(synchronize_session=False)
        )
        await session.execute(stmt)


knowledge_base_crud = KnowledgeBaseCRUD()
