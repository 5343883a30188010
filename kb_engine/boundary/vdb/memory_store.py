"""
In-process vector store.

Keeps chunks in insertion-ordered lists per knowledge base. Intended for
local development and tests; data does not survive a restart.

Dependencies: numpy, kb_engine.core.similarity
System role: Development vector store
"""

import logging
from collections import defaultdict
from uuid import UUID

import numpy as np

from kb_engine.boundary.vdb.vector_schemas import ChunkRecord, ChunkRef, VectorSearchResult
from kb_engine.boundary.vdb.vector_store import VectorStore
from kb_engine.core.exceptions import VectorStoreError
from kb_engine.core.similarity import similarity_scores

logger = logging.getLogger(__name__)


class InMemoryVectorStore(VectorStore):
    """Vector store backed by process memory."""

    def __init__(self) -> None:
        self._chunks: dict[UUID, list[ChunkRecord]] = defaultdict(list)
        self._ids: set[str] = set()

    async def add_chunk(self, record: ChunkRecord) -> None:
        if record.chunk_id in self._ids:
            raise VectorStoreError(
                "Chunk id already exists",
                {"chunk_id": record.chunk_id},
            )
        self._chunks[record.knowledge_base_id].append(record)
        self._ids.add(record.chunk_id)

    async def get_vectors(self, knowledge_base_id: UUID) -> list[list[float]]:
        return [c.vector for c in self._chunks.get(knowledge_base_id, [])]

    async def query(
        self,
        knowledge_base_id: UUID,
        vector: list[float],
        top_k: int,
        source_document_id: UUID | None = None,
    ) -> list[VectorSearchResult]:
        candidates = [
            c
            for c in self._chunks.get(knowledge_base_id, [])
            if source_document_id is None or c.metadata.source_document_id == source_document_id
        ]
        if not candidates or top_k <= 0:
            return []

        scores = similarity_scores(vector, [c.vector for c in candidates])
        order = np.argsort(-scores, kind="stable")[:top_k]
        return [
            VectorSearchResult(
                chunk_id=candidates[i].chunk_id,
                content=candidates[i].content,
                score=float(scores[i]),
                metadata=candidates[i].metadata,
            )
            for i in order
        ]

    async def list_chunk_refs(self, knowledge_base_id: UUID) -> list[ChunkRef]:
        return [
            ChunkRef(chunk_id=c.chunk_id, source_document_id=c.metadata.source_document_id)
            for c in self._chunks.get(knowledge_base_id, [])
        ]

    async def delete_chunks(self, chunk_ids: list[str]) -> int:
        targets = set(chunk_ids) & self._ids
        if not targets:
            return 0
        for kb_id, records in self._chunks.items():
            self._chunks[kb_id] = [c for c in records if c.chunk_id not in targets]
        self._ids -= targets
        return len(targets)

    async def delete_by_source_document(
        self,
        knowledge_base_id: UUID,
        source_document_id: UUID,
    ) -> int:
        ids = [
            c.chunk_id
            for c in self._chunks.get(knowledge_base_id, [])
            if c.metadata.source_document_id == source_document_id
        ]
        return await self.delete_chunks(ids)

    async def count(
        self,
        knowledge_base_id: UUID,
        source_document_id: UUID | None = None,
    ) -> int:
        return sum(
            1
            for c in self._chunks.get(knowledge_base_id, [])
            if source_document_id is None or c.metadata.source_document_id == source_document_id
        )

    async def count_by_source_type(self, knowledge_base_id: UUID) -> dict[str, int]:
        counts: dict[str, int] = defaultdict(int)
        for c in self._chunks.get(knowledge_base_id, []):
            counts[c.metadata.source_type.value] += 1
        return dict(counts)

    async def list_knowledge_base_ids(self) -> list[UUID]:
        return [kb_id for kb_id, records in self._chunks.items() if records]
