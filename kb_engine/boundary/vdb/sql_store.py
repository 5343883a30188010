"""
SQL-backed vector store.

Stores vectors as JSON arrays in the chunks table and ranks them with an
exact cosine scan in numpy. Each operation runs in its own session and
transaction. Database errors surface as VectorStoreError so callers can
apply their own policy (duplicate checks fail open, queries fail).

Dependencies: sqlalchemy, numpy, kb_engine.boundary.db
System role: Default vector store for deployments
"""

import logging
from uuid import UUID

import numpy as np
from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kb_engine.boundary.db.models.chunk_model import ChunkModel
from kb_engine.boundary.vdb.vector_schemas import (
    ChunkMetadata,
    ChunkRecord,
    ChunkRef,
    VectorSearchResult,
)
from kb_engine.boundary.vdb.vector_store import VectorStore
from kb_engine.core.exceptions import VectorStoreError
from kb_engine.core.similarity import similarity_scores

logger = logging.getLogger(__name__)


def _metadata_from_row(row: ChunkModel) -> ChunkMetadata:
    return ChunkMetadata(
        source_document_id=row.source_document_id,
        source_type=row.source_type,
        title=row.title,
        chunk_index=row.chunk_index,
        total_chunks=row.total_chunks,
        created_at=row.created_at,
        extra=row.extra or {},
    )


class SQLVectorStore(VectorStore):
    """Vector store persisted through SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """
        Initialize store.

        Args:
            session_factory: Factory producing independent async sessions
        """
        self._session_factory = session_factory

    async def add_chunk(self, record: ChunkRecord) -> None:
        """
        Insert one chunk row.

        Args:
            record: Chunk with vector and metadata

        Raises:
            VectorStoreError: When the insert fails
        """
        meta = record.metadata
        try:
            async with self._session_factory() as session, session.begin():
                session.add(
                    ChunkModel(
                        chunk_id=record.chunk_id,
                        knowledge_base_id=record.knowledge_base_id,
                        source_document_id=meta.source_document_id,
                        source_type=meta.source_type,
                        title=meta.title,
                        content=record.content,
                        vector=list(record.vector),
                        chunk_index=meta.chunk_index,
                        total_chunks=meta.total_chunks,
                        extra=meta.extra,
                        created_at=meta.created_at,
                    )
                )
        except SQLAlchemyError as e:
            raise VectorStoreError(
                f"Failed to insert chunk: {e}",
                {"chunk_id": record.chunk_id},
            ) from e

    async def get_vectors(self, knowledge_base_id: UUID) -> list[list[float]]:
        """
        Load every vector in a knowledge base.

        Raises:
            VectorStoreError: When the read fails
        """
        stmt = (
            select(ChunkModel.vector)
            .where(ChunkModel.knowledge_base_id == knowledge_base_id)
            .order_by(ChunkModel.sequence)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [list(v) for v in result.scalars().all()]
        except SQLAlchemyError as e:
            raise VectorStoreError(
                f"Failed to read vectors: {e}",
                {"knowledge_base_id": str(knowledge_base_id)},
            ) from e

    async def query(
        self,
        knowledge_base_id: UUID,
        vector: list[float],
        top_k: int,
        source_document_id: UUID | None = None,
    ) -> list[VectorSearchResult]:
        """
        Exact cosine ranking over the knowledge base.

        Rows are loaded in insertion order and sorted with a stable sort,
        so equal scores keep that order.

        Raises:
            VectorStoreError: When the read fails
            EmbeddingDimensionError: When stored vectors differ in dimension
        """
        stmt = (
            select(ChunkModel)
            .where(ChunkModel.knowledge_base_id == knowledge_base_id)
            .order_by(ChunkModel.sequence)
        )
        if source_document_id is not None:
            stmt = stmt.where(ChunkModel.source_document_id == source_document_id)

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = list(result.scalars().all())
        except SQLAlchemyError as e:
            raise VectorStoreError(
                f"Vector query failed: {e}",
                {"knowledge_base_id": str(knowledge_base_id)},
            ) from e

        if not rows or top_k <= 0:
            return []

        scores = similarity_scores(vector, [row.vector for row in rows])
        order = np.argsort(-scores, kind="stable")[:top_k]

        logger.debug(
            f"{__name__}:query - Ranked {len(rows)} chunks",
            extra={"knowledge_base_id": str(knowledge_base_id), "top_k": top_k},
        )
        return [
            VectorSearchResult(
                chunk_id=rows[i].chunk_id,
                content=rows[i].content,
                score=float(scores[i]),
                metadata=_metadata_from_row(rows[i]),
            )
            for i in order
        ]

    async def list_chunk_refs(self, knowledge_base_id: UUID) -> list[ChunkRef]:
        stmt = (
            select(ChunkModel.chunk_id, ChunkModel.source_document_id)
            .where(ChunkModel.knowledge_base_id == knowledge_base_id)
            .order_by(ChunkModel.sequence)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [
                    ChunkRef(chunk_id=chunk_id, source_document_id=doc_id)
                    for chunk_id, doc_id in result.all()
                ]
        except SQLAlchemyError as e:
            raise VectorStoreError(f"Failed to list chunks: {e}") from e

    async def delete_chunks(self, chunk_ids: list[str]) -> int:
        if not chunk_ids:
            return 0
        stmt = delete(ChunkModel).where(ChunkModel.chunk_id.in_(chunk_ids))
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(stmt)
                return result.rowcount
        except SQLAlchemyError as e:
            raise VectorStoreError(f"Failed to delete chunks: {e}") from e

    async def delete_by_source_document(
        self,
        knowledge_base_id: UUID,
        source_document_id: UUID,
    ) -> int:
        stmt = (
            delete(ChunkModel)
            .where(ChunkModel.knowledge_base_id == knowledge_base_id)
            .where(ChunkModel.source_document_id == source_document_id)
        )
        try:
            async with self._session_factory() as session, session.begin():
                result = await session.execute(stmt)
                return result.rowcount
        except SQLAlchemyError as e:
            raise VectorStoreError(
                f"Failed to delete chunks: {e}",
                {"source_document_id": str(source_document_id)},
            ) from e

    async def count(
        self,
        knowledge_base_id: UUID,
        source_document_id: UUID | None = None,
    ) -> int:
        stmt = select(func.count()).select_from(ChunkModel).where(
            ChunkModel.knowledge_base_id == knowledge_base_id
        )
        if source_document_id is not None:
            stmt = stmt.where(ChunkModel.source_document_id == source_document_id)
        try:
            async with self._session_factory() as session:
                return (await session.execute(stmt)).scalar_one()
        except SQLAlchemyError as e:
            raise VectorStoreError(f"Failed to count chunks: {e}") from e

    async def count_by_source_type(self, knowledge_base_id: UUID) -> dict[str, int]:
        stmt = (
            select(ChunkModel.source_type, func.count())
            .where(ChunkModel.knowledge_base_id == knowledge_base_id)
            .group_by(ChunkModel.source_type)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return {source_type.value: n for source_type, n in result.all()}
        except SQLAlchemyError as e:
            raise VectorStoreError(f"Failed to aggregate chunks: {e}") from e

    async def list_knowledge_base_ids(self) -> list[UUID]:
        stmt = select(ChunkModel.knowledge_base_id).distinct()
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise VectorStoreError(f"Failed to list knowledge bases: {e}") from e
