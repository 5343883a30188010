"""
Generic async CRUD helpers.

Shared by the knowledge base, source document and parsing job CRUD
singletons. Methods only flush; the caller's session.begin() block owns
the commit.

Dependencies: sqlalchemy
System role: Foundation for model-specific persistence operations
"""

from typing import Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from kb_engine.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Create, read and delete by UUID primary key.

    Type Parameters:
        ModelT: Mapped model with an ``id`` UUID column
    """

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    async def create(self, session: AsyncSession, **values) -> ModelT:
        """
        Insert a row and return it with server defaults populated.

        Args:
            session: Async database session inside a transaction
            **values: Column values

        Returns:
            The persisted model instance
        """
        instance = self.model(**values)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def get_by_id(self, session: AsyncSession, id: UUID) -> ModelT | None:
        result = await session.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_all(self, session: AsyncSession, limit: int | None = None) -> Sequence[ModelT]:
        """Rows in primary key order, optionally capped at limit."""
        stmt = select(self.model).order_by(self.model.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def delete_by_id(self, session: AsyncSession, id: UUID) -> bool:
        """
        Delete one row.

        Returns:
            bool: False when no row had that id
        """
        result = await session.execute(delete(self.model).where(self.model.id == id))
        return result.rowcount > 0
