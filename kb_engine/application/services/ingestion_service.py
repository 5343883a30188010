"""
Ingestion service orchestrator.

Turns submitted text into deduplicated, embedded chunks:
validate -> reserve size -> record source document -> enrich -> chunk ->
embed -> duplicate check -> store.

Dependencies: kb_engine.boundary.db, kb_engine.boundary.vdb, kb_engine.core
System role: Text ingestion orchestration
"""

import hashlib
import logging
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kb_engine.boundary.db.CRUD.knowledge_base_crud import knowledge_base_crud
from kb_engine.boundary.db.CRUD.source_document_crud import source_document_crud
from kb_engine.boundary.ledger.credit_ledger import CreditLedger
from kb_engine.boundary.vdb.vector_schemas import ChunkMetadata, ChunkRecord
from kb_engine.boundary.vdb.vector_store import VectorStore
from kb_engine.configs.plans import PlanSettings
from kb_engine.core.chunking import TextChunker, build_indexable_text, resolve_title
from kb_engine.core.embeddings.provider import EmbeddingProvider
from kb_engine.core.exceptions import (
    EmbeddingError,
    KnowledgeBaseNotFoundError,
    PlanLimitExceededError,
    VectorStoreError,
)
from kb_engine.core.similarity import DuplicateDetector
from kb_engine.models.ingestion import IngestionResult, SizeLimitCheck
from kb_engine.models.source import SourcePayload, SourceType, TextSource

logger = logging.getLogger(__name__)


def make_chunk_id(
    knowledge_base_id: UUID,
    source_document_id: UUID,
    chunk_index: int,
    content: str,
) -> str:
    """Deterministic chunk id: 32 hex chars of sha256 over scope, position and text."""
    raw = f"{knowledge_base_id}:{source_document_id}:{chunk_index}:{content}"
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:32]


class IngestionService:
    """
    Ingestion orchestrator.

    Size accounting counts the raw submitted content, before enrichment.
    Chunks that fail to embed or store are counted and skipped; only an
    embedding dimension mismatch aborts the call.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        vector_store: VectorStore,
        embeddings: EmbeddingProvider,
        ledger: CreditLedger,
        plans: PlanSettings,
        detector: DuplicateDetector | None = None,
        chunker: TextChunker | None = None,
        batch_size: int = 50,
    ) -> None:
        """
        Initialize ingestion service.

        Args:
            session_factory: Factory for relational sessions
            vector_store: Chunk storage
            embeddings: Embedding provider shared with queries
            ledger: Credit ledger, used here for plan lookup
            plans: Plan size limits
            detector: Duplicate detector (built over vector_store if None)
            chunker: Text chunker (defaults if None)
            batch_size: Chunks per embedding request
        """
        self.session_factory = session_factory
        self.vector_store = vector_store
        self.embeddings = embeddings
        self.ledger = ledger
        self.plans = plans
        self.detector = detector or DuplicateDetector(vector_store)
        self.chunker = chunker or TextChunker()
        self.batch_size = max(1, batch_size)

    async def _limit_for(self, account_id: str) -> int:
        plan = await self.ledger.get_plan(account_id)
        return self.plans.max_context_size_bytes(plan)

    async def check_size_limit(self, knowledge_base_id: UUID, size_bytes: int) -> SizeLimitCheck:
        """
        Check whether size_bytes more content fits in a knowledge base.

        Args:
            knowledge_base_id: Target knowledge base
            size_bytes: Size of the content to add

        Returns:
            SizeLimitCheck: can_add flag plus current/max/remaining bytes

        Raises:
            KnowledgeBaseNotFoundError: If the knowledge base does not exist
        """
        async with self.session_factory() as session:
            kb = await knowledge_base_crud.get_by_id(session, knowledge_base_id)
        if kb is None:
            raise KnowledgeBaseNotFoundError(str(knowledge_base_id))

        max_bytes = await self._limit_for(kb.account_id)
        current = kb.content_size_bytes
        return SizeLimitCheck(
            can_add=current + size_bytes <= max_bytes,
            current_bytes=current,
            max_bytes=max_bytes,
            remaining_bytes=max(0, max_bytes - current),
        )

    async def ingest(
        self,
        knowledge_base_id: UUID,
        content: str,
        source: SourcePayload | None = None,
        source_label: str | None = None,
    ) -> IngestionResult:
        """
        Ingest text into a knowledge base.

        Args:
            knowledge_base_id: Target knowledge base
            content: Raw text (the answer, for question sources)
            source: Typed source payload (plain text if None)
            source_label: Optional display title

        Returns:
            IngestionResult: success flag and per-chunk counts

        Raises:
            EmbeddingDimensionError: If the embedding model returns vectors of
                the wrong length
        """
        source = source or TextSource()

        if not content or not content.strip():
            return IngestionResult(
                success=False,
                error="Content must not be empty",
                error_code="validation",
            )

        size_bytes = len(content.encode("utf-8"))

        async with self.session_factory() as session:
            kb = await knowledge_base_crud.get_by_id(session, knowledge_base_id)
        if kb is None:
            logger.warning(f"{__name__}:ingest - Knowledge base not found: {knowledge_base_id}")
            return IngestionResult(
                success=False,
                error=KnowledgeBaseNotFoundError(str(knowledge_base_id)).message,
                error_code="not_found",
            )

        limit_bytes = await self._limit_for(kb.account_id)
        title = resolve_title(source, source_label)
        source_document_id = uuid4()
        source_type = SourceType(source.type)

        try:
            async with self.session_factory() as session, session.begin():
                reserved = await knowledge_base_crud.try_add_content_size(
                    session, knowledge_base_id, size_bytes, limit_bytes
                )
                if not reserved:
                    current = await knowledge_base_crud.get_by_id(session, knowledge_base_id)
                    raise PlanLimitExceededError(
                        current_bytes=current.content_size_bytes if current else 0,
                        attempted_bytes=size_bytes,
                        limit_bytes=limit_bytes,
                    )
                await source_document_crud.create(
                    session,
                    id=source_document_id,
                    knowledge_base_id=knowledge_base_id,
                    source_type=source_type,
                    title=title,
                    size_bytes=size_bytes,
                    payload=source.model_dump(mode="json"),
                )
        except PlanLimitExceededError as e:
            logger.info(f"{__name__}:ingest - Plan limit reached for kb={knowledge_base_id}: {e.message}")
            return IngestionResult(success=False, error=e.message, error_code="plan_limit")

        text = build_indexable_text(content, title, source)
        chunks = self.chunker.chunk(text)
        vectors = await self._embed_all(chunks)

        extra = source.model_dump(mode="json", exclude={"type"})
        created = skipped = failed = 0
        accepted: list[list[float]] = []

        for index, (chunk, vector) in enumerate(zip(chunks, vectors)):
            if vector is None:
                failed += 1
                continue

            if self.detector.matches_any(vector, accepted) or await self.detector.is_duplicate(
                vector, knowledge_base_id
            ):
                skipped += 1
                continue

            record = ChunkRecord(
                chunk_id=make_chunk_id(knowledge_base_id, source_document_id, index, chunk),
                knowledge_base_id=knowledge_base_id,
                content=chunk,
                vector=vector,
                metadata=ChunkMetadata(
                    source_document_id=source_document_id,
                    source_type=source_type,
                    title=title,
                    chunk_index=index,
                    total_chunks=len(chunks),
                    extra=extra,
                ),
            )
            try:
                await self.vector_store.add_chunk(record)
            except VectorStoreError as e:
                logger.error(f"{__name__}:ingest - Failed to store chunk {index}: {e}")
                failed += 1
                continue

            accepted.append(vector)
            created += 1

        logger.info(
            f"{__name__}:ingest - kb={knowledge_base_id} doc={source_document_id} "
            f"created={created} skipped={skipped} failed={failed} total={len(chunks)}"
        )
        return IngestionResult(
            success=True,
            source_document_id=source_document_id,
            chunks_created=created,
            chunks_skipped=skipped,
            chunks_failed=failed,
            total_chunks=len(chunks),
        )

    async def _embed_all(self, chunks: list[str]) -> list[list[float] | None]:
        """
        Embed chunks in batches, falling back to one-by-one for failed batches.

        Returns:
            One vector per chunk, None where embedding failed
        """
        vectors: list[list[float] | None] = []
        for start in range(0, len(chunks), self.batch_size):
            batch = chunks[start : start + self.batch_size]
            try:
                vectors.extend(await self.embeddings.embed_documents(batch))
                continue
            except EmbeddingError as e:
                logger.warning(
                    f"{__name__}:_embed_all - Batch at {start} failed, retrying per chunk: {e}"
                )

            for offset, chunk in enumerate(batch):
                try:
                    vectors.append(await self.embeddings.embed(chunk))
                except EmbeddingError as e:
                    logger.error(f"{__name__}:_embed_all - Chunk {start + offset} failed: {e}")
                    vectors.append(None)
        return vectors
