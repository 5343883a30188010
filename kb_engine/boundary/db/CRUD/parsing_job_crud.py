"""
Parsing job CRUD operations.

Status changes are compare-and-set updates: the UPDATE only matches when
the row is currently in an allowed predecessor state, so a transition can
never regress a job or touch a terminal one, even with racing workers.

Dependencies: sqlalchemy, kb_engine.boundary.db.models
System role: Parsing job persistence and state machine enforcement
"""

from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from kb_engine.boundary.db.CRUD.base_crud import BaseCRUD
from kb_engine.boundary.db.models.parsing_job_model import (
    ALLOWED_PREDECESSORS,
    ParsingJobModel,
    ParsingJobStatus,
)


class ParsingJobCRUD(BaseCRUD[ParsingJobModel]):
    """CRUD operations for ParsingJobModel."""

    def __init__(self) -> None:
        """Initialize ParsingJobCRUD with ParsingJobModel."""
        super().__init__(ParsingJobModel)

    async def get_by_account(
        self,
        session: AsyncSession,
        account_id: str,
        limit: int | None = None,
    ) -> Sequence[ParsingJobModel]:
        """
        Retrieve an account's jobs, newest first.

        Args:
            session: Async database session
            account_id: Owning account
            limit: Maximum number of jobs to return

        Returns:
            Sequence of ParsingJobModels
        """
        stmt = (
            select(ParsingJobModel)
            .where(ParsingJobModel.account_id == account_id)
            .order_by(ParsingJobModel.created_at.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def transition(
        self,
        session: AsyncSession,
        id: UUID,
        to_status: ParsingJobStatus,
        **fields: Any,
    ) -> ParsingJobModel | None:
        """
        Move a job to a new status if its current status allows it.

        Terminal transitions also stamp completed_at.

        Args:
            session: Async database session
            id: Job UUID
            to_status: Target status
            **fields: Extra columns written in the same statement

        Returns:
            Updated ParsingJobModel, or None if the job is missing or in a
            state from which to_status is not reachable
        """
        predecessors = ALLOWED_PREDECESSORS.get(to_status, ())
        if not predecessors:
            return None

        values = dict(fields, status=to_status)
        if to_status.is_terminal:
            values.setdefault("completed_at", datetime.now(timezone.utc))

        stmt = (
            update(ParsingJobModel)
            .where(ParsingJobModel.id == id)
            .where(ParsingJobModel.status.in_(predecessors))
            .values(**values)
            .returning(ParsingJobModel)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()


parsing_job_crud = ParsingJobCRUD()
