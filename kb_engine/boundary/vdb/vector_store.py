"""
Vector store interface.

Every backend scopes data by knowledge base id and must provide:
exhaustive vector reads for duplicate detection, ranked cosine queries
with stable insertion-order tie breaks, and deletion by source document.

Reads are not synchronized with concurrent writes; a query may or may not
observe a chunk inserted by an ingestion that is still running.

Dependencies: kb_engine.boundary.vdb.vector_schemas
System role: Storage contract for embedded chunks
"""

from abc import ABC, abstractmethod
from uuid import UUID

from kb_engine.boundary.vdb.vector_schemas import ChunkRecord, ChunkRef, VectorSearchResult


class VectorStore(ABC):
    """Abstract chunk + vector storage scoped by knowledge base."""

    @abstractmethod
    async def add_chunk(self, record: ChunkRecord) -> None:
        """Persist one chunk. Raises VectorStoreError on failure."""

    @abstractmethod
    async def get_vectors(self, knowledge_base_id: UUID) -> list[list[float]]:
        """Return every stored vector for a knowledge base."""

    @abstractmethod
    async def query(
        self,
        knowledge_base_id: UUID,
        vector: list[float],
        top_k: int,
        source_document_id: UUID | None = None,
    ) -> list[VectorSearchResult]:
        """
        Rank chunks by cosine similarity to a query vector.

        Args:
            knowledge_base_id: Search scope
            vector: Query embedding
            top_k: Maximum number of results
            source_document_id: Optional filter to a single source document

        Returns:
            Results by descending score; equal scores keep insertion order
        """

    @abstractmethod
    async def list_chunk_refs(self, knowledge_base_id: UUID) -> list[ChunkRef]:
        """Return (chunk_id, source_document_id) for every chunk in a knowledge base."""

    @abstractmethod
    async def delete_chunks(self, chunk_ids: list[str]) -> int:
        """Delete chunks by id, returning how many were removed."""

    @abstractmethod
    async def delete_by_source_document(
        self,
        knowledge_base_id: UUID,
        source_document_id: UUID,
    ) -> int:
        """Delete all chunks of one source document, returning how many were removed."""

    @abstractmethod
    async def count(
        self,
        knowledge_base_id: UUID,
        source_document_id: UUID | None = None,
    ) -> int:
        """Count chunks in a knowledge base, optionally for one source document."""

    @abstractmethod
    async def count_by_source_type(self, knowledge_base_id: UUID) -> dict[str, int]:
        """Count chunks per source type."""

    @abstractmethod
    async def list_knowledge_base_ids(self) -> list[UUID]:
        """Return every knowledge base id that has at least one chunk."""
