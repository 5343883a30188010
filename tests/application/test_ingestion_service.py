"""
Test suite for IngestionService.

Covers validation, plan size accounting, duplicate skipping, per-chunk
embedding failures and the source document record.

System role: Verification of the ingestion pipeline
"""

from uuid import uuid4

import pytest

from kb_engine.application.services.ingestion_service import IngestionService, make_chunk_id
from kb_engine.boundary.db.CRUD.knowledge_base_crud import knowledge_base_crud
from kb_engine.boundary.db.CRUD.source_document_crud import source_document_crud
from kb_engine.boundary.db.models.knowledge_base_model import KnowledgeBaseModel
from kb_engine.configs.plans import PlanSettings
from kb_engine.core.chunking import TextChunker
from kb_engine.core.embeddings.provider import EmbeddingProvider
from kb_engine.core.exceptions import KnowledgeBaseNotFoundError, VectorStoreError
from kb_engine.models.source import LinkSource, SourceType
from tests.fakes import DIMENSION, HashingEmbeddings

REPEATED = "aaaa bbbb aaaa bbbb aaaa bbbb"


def make_service(
    session_factory,
    vector_store,
    ledger,
    embeddings: EmbeddingProvider,
    plans: PlanSettings | None = None,
    chunk_size: int = 2000,
) -> IngestionService:
    return IngestionService(
        session_factory=session_factory,
        vector_store=vector_store,
        embeddings=embeddings,
        ledger=ledger,
        plans=plans or PlanSettings(),
        chunker=TextChunker(chunk_size=chunk_size, chunk_overlap=0),
    )


@pytest.fixture
def service(session_factory, vector_store, ledger, embeddings) -> IngestionService:
    return make_service(session_factory, vector_store, ledger, embeddings)


async def reload_kb(session_factory, kb_id) -> KnowledgeBaseModel:
    async with session_factory() as session:
        return await knowledge_base_crud.get_by_id(session, kb_id)


class TestMakeChunkId:
    """Test suite for make_chunk_id()."""

    def test_chunk_id_should_be_deterministic(self) -> None:
        kb_id, doc_id = uuid4(), uuid4()
        first = make_chunk_id(kb_id, doc_id, 0, "hello")
        assert first == make_chunk_id(kb_id, doc_id, 0, "hello")
        assert len(first) == 32

    def test_chunk_id_should_change_with_position(self) -> None:
        kb_id, doc_id = uuid4(), uuid4()
        assert make_chunk_id(kb_id, doc_id, 0, "hello") != make_chunk_id(kb_id, doc_id, 1, "hello")


class TestIngestionServiceIngest:
    """Test suite for IngestionService.ingest()."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   \n\t"])
    async def test_ingest_should_reject_blank_content(self, service, knowledge_base, content) -> None:
        # Act
        result = await service.ingest(knowledge_base.id, content)

        # Assert
        assert result.success is False
        assert result.error_code == "validation"

    @pytest.mark.asyncio
    async def test_ingest_should_report_missing_knowledge_base(self, service, ledger) -> None:
        # Act
        result = await service.ingest(uuid4(), "Some content")

        # Assert
        assert result.success is False
        assert result.error_code == "not_found"

    @pytest.mark.asyncio
    async def test_ingest_should_store_chunks_and_record_source(
        self, service, knowledge_base, vector_store, session_factory
    ) -> None:
        """Test a link source is recorded and its fields reach chunk metadata."""
        # Arrange
        source = LinkSource(url="https://acme.io/pricing", routes=["/pricing"])

        # Act
        result = await service.ingest(
            knowledge_base.id, "Plans start at ten dollars", source=source, source_label="Pricing"
        )

        # Assert
        assert result.success is True
        assert result.chunks_created == result.total_chunks > 0
        assert await vector_store.count(knowledge_base.id, result.source_document_id) == result.chunks_created

        async with session_factory() as session:
            doc = await source_document_crud.get_by_id(session, result.source_document_id)
        assert doc.source_type == SourceType.LINK
        assert doc.title == "Pricing"
        assert doc.payload["url"] == "https://acme.io/pricing"

        hits = await vector_store.query(knowledge_base.id, [1.0] * DIMENSION, top_k=1)
        assert hits[0].metadata.extra["url"] == "https://acme.io/pricing"
        assert "type" not in hits[0].metadata.extra

    @pytest.mark.asyncio
    async def test_ingest_should_skip_duplicates_within_one_call(
        self, session_factory, vector_store, ledger, embeddings, knowledge_base
    ) -> None:
        """Test repeated chunks in one submission are stored once."""
        # Arrange
        service = make_service(session_factory, vector_store, ledger, embeddings, chunk_size=10)

        # Act
        result = await service.ingest(knowledge_base.id, REPEATED, source_label="X")

        # Assert
        assert result.total_chunks == 4
        assert result.chunks_created == 2
        assert result.chunks_skipped == 2

    @pytest.mark.asyncio
    async def test_ingest_same_content_twice_should_add_no_chunks(
        self, service, knowledge_base, vector_store
    ) -> None:
        """Test re-submitting identical content skips every chunk."""
        # Arrange
        first = await service.ingest(knowledge_base.id, "Refunds are issued within thirty days")
        count_before = await vector_store.count(knowledge_base.id)

        # Act
        second = await service.ingest(knowledge_base.id, "Refunds are issued within thirty days")

        # Assert
        assert first.chunks_created > 0
        assert second.success is True
        assert second.chunks_created == 0
        assert second.chunks_skipped == second.total_chunks
        assert await vector_store.count(knowledge_base.id) == count_before

    @pytest.mark.asyncio
    async def test_ingest_paraphrase_in_second_document_should_skip_overlap(
        self, service, knowledge_base, vector_store, session_factory
    ) -> None:
        """Test a near-paraphrase of an earlier document adds no chunks but keeps its own record."""
        # Arrange
        policy = (
            "Customers {verb} return unopened items within thirty days of delivery for a full refund "
            "to the original payment method, and store credit is offered for opened items in "
            "resalable condition."
        )
        first = await service.ingest(knowledge_base.id, policy.format(verb="may"), source_label="doc1")

        # Act
        second = await service.ingest(knowledge_base.id, policy.format(verb="can"), source_label="doc2")

        # Assert
        assert first.chunks_created == 1
        assert second.success is True
        assert second.chunks_created == 0
        assert second.chunks_skipped == second.total_chunks == 1
        assert await vector_store.count(knowledge_base.id) == 1
        assert await vector_store.count(knowledge_base.id, first.source_document_id) == 1

        async with session_factory() as session:
            doc = await source_document_crud.get_by_id(session, second.source_document_id)
        assert doc is not None
        assert doc.title == "doc2"

    @pytest.mark.asyncio
    async def test_ingest_should_count_chunks_that_fail_to_embed(
        self, session_factory, vector_store, ledger, knowledge_base
    ) -> None:
        """Test a failed batch falls back to per-chunk embedding and counts failures."""
        # Arrange
        provider = EmbeddingProvider(
            HashingEmbeddings(fail_marker="zzzz"),
            dimension=DIMENSION,
            max_attempts=1,
            backoff_initial=0.0,
            backoff_max=0.0,
        )
        service = make_service(session_factory, vector_store, ledger, provider, chunk_size=10)

        # Act
        result = await service.ingest(knowledge_base.id, "aaaa bbbb zzzz cccc", source_label="X")

        # Assert
        assert result.success is True
        assert result.total_chunks == 3
        assert result.chunks_created == 2
        assert result.chunks_failed == 1

    @pytest.mark.asyncio
    async def test_ingest_should_fail_open_when_duplicate_check_cannot_read(
        self, service, knowledge_base, vector_store, monkeypatch
    ) -> None:
        """Test an unreadable store does not block ingestion."""
        # Arrange
        async def broken_get_vectors(knowledge_base_id):
            raise VectorStoreError("read timeout")

        monkeypatch.setattr(vector_store, "get_vectors", broken_get_vectors)

        # Act
        result = await service.ingest(knowledge_base.id, "Support hours are nine to five")

        # Assert
        assert result.success is True
        assert result.chunks_created == result.total_chunks

    @pytest.mark.asyncio
    async def test_ingest_should_track_content_size(self, service, knowledge_base, session_factory) -> None:
        """Test the raw content size, not the enriched text, is counted."""
        # Act
        await service.ingest(knowledge_base.id, "héllo")

        # Assert
        kb = await reload_kb(session_factory, knowledge_base.id)
        assert kb.content_size_bytes == len("héllo".encode("utf-8"))


class TestIngestionServicePlanLimit:
    """Test suite for plan size limits."""

    @pytest.fixture
    def limited_service(self, session_factory, vector_store, ledger, embeddings) -> IngestionService:
        return make_service(
            session_factory,
            vector_store,
            ledger,
            embeddings,
            plans=PlanSettings(max_context_size_kb={"free": 1}),
        )

    @pytest.mark.asyncio
    async def test_ingest_should_refuse_content_over_limit(
        self, limited_service, knowledge_base, session_factory
    ) -> None:
        """Test the size counter and chunks are untouched when the limit is hit."""
        # Arrange
        await limited_service.ingest(knowledge_base.id, "x " * 500)

        # Act
        result = await limited_service.ingest(knowledge_base.id, "y " * 50)

        # Assert
        assert result.success is False
        assert result.error_code == "plan_limit"
        kb = await reload_kb(session_factory, knowledge_base.id)
        assert kb.content_size_bytes == 1000

    @pytest.mark.asyncio
    async def test_check_size_limit_should_report_remaining_bytes(
        self, limited_service, knowledge_base
    ) -> None:
        # Arrange
        await limited_service.ingest(knowledge_base.id, "x " * 500)

        # Act
        check = await limited_service.check_size_limit(knowledge_base.id, 100)

        # Assert
        assert check.can_add is False
        assert check.current_bytes == 1000
        assert check.max_bytes == 1024
        assert check.remaining_bytes == 24

    @pytest.mark.asyncio
    async def test_check_size_limit_should_raise_for_missing_knowledge_base(
        self, limited_service, ledger
    ) -> None:
        with pytest.raises(KnowledgeBaseNotFoundError):
            await limited_service.check_size_limit(uuid4(), 1)
