"""
Test suite for RetrievalService.

Covers fast and accurate queries, per-query billing, free empty results,
refund on synthesis failure and access checks.

System role: Verification of query execution and billing
"""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from kb_engine.application.container import ServiceContainer
from kb_engine.core.exceptions import (
    CreditLedgerError,
    InsufficientCreditsError,
    KnowledgeBaseAccessError,
    KnowledgeBaseNotFoundError,
    SynthesisError,
    ValidationError,
)
from kb_engine.core.retrieval.answer_prompt import NOT_FOUND_ANSWER
from kb_engine.models.query import QueryMode
from tests.fakes import ACCOUNT_ID, OTHER_ACCOUNT_ID, STARTING_BALANCE


@pytest.fixture
async def populated(container: ServiceContainer, knowledge_base):
    """Knowledge base holding three unrelated text sources."""
    for content in (
        "Refunds are issued within thirty days of purchase",
        "Our office is located in Lisbon near the river",
        "Premium support is available around the clock",
    ):
        await container.ingestion_service.ingest(knowledge_base.id, content)
    return knowledge_base


class TestFastQuery:
    """Test suite for fast-mode queries."""

    @pytest.mark.asyncio
    async def test_fast_query_should_rank_best_match_first_and_charge_one(
        self, container: ServiceContainer, populated
    ) -> None:
        # Act
        response = await container.retrieval_service.query(
            ACCOUNT_ID, populated.id, "how many days for refunds", top_k=2
        )

        # Assert
        assert response.mode == QueryMode.FAST
        assert len(response.results) == 2
        assert "Refunds" in response.results[0].content
        assert response.results[0].score >= response.results[1].score
        assert response.answer is None
        assert response.credits_used == 1
        assert await container.ledger.get_balance(ACCOUNT_ID) == STARTING_BALANCE - 1

    @pytest.mark.asyncio
    async def test_query_should_filter_by_source_document(
        self, container: ServiceContainer, knowledge_base
    ) -> None:
        # Arrange
        first = await container.ingestion_service.ingest(knowledge_base.id, "Lockers are on floor two")
        await container.ingestion_service.ingest(knowledge_base.id, "Lockers cost one euro")

        # Act
        response = await container.retrieval_service.query(
            ACCOUNT_ID, knowledge_base.id, "lockers", source_document_id=first.source_document_id
        )

        # Assert
        assert len(response.results) == 1
        assert response.results[0].metadata["source_document_id"] == str(first.source_document_id)

    @pytest.mark.asyncio
    async def test_empty_knowledge_base_should_be_free(
        self, container: ServiceContainer, knowledge_base
    ) -> None:
        # Act
        response = await container.retrieval_service.query(ACCOUNT_ID, knowledge_base.id, "anything")

        # Assert
        assert response.results == []
        assert response.credits_used == 0
        assert await container.ledger.get_balance(ACCOUNT_ID) == STARTING_BALANCE

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("query", "top_k"), [("   ", None), ("refunds", 0), ("refunds", 21)])
    async def test_query_should_validate_input(
        self, container: ServiceContainer, knowledge_base, query: str, top_k
    ) -> None:
        with pytest.raises(ValidationError):
            await container.retrieval_service.query(ACCOUNT_ID, knowledge_base.id, query, top_k=top_k)


class TestAccurateQuery:
    """Test suite for accurate-mode queries."""

    @pytest.mark.asyncio
    async def test_accurate_query_should_synthesize_and_charge_two(
        self, container: ServiceContainer, populated, synthesizer
    ) -> None:
        # Act
        response = await container.retrieval_service.query(
            ACCOUNT_ID, populated.id, "refund window", mode=QueryMode.ACCURATE, top_k=3
        )

        # Assert
        assert response.answer.startswith("Answer based on:")
        assert response.credits_used == 2
        question, passages = synthesizer.calls[0]
        assert question == "refund window"
        assert len(passages) == 3
        assert await container.ledger.get_balance(ACCOUNT_ID) == STARTING_BALANCE - 2

    @pytest.mark.asyncio
    async def test_accurate_query_without_results_should_not_call_model(
        self, container: ServiceContainer, knowledge_base, synthesizer
    ) -> None:
        # Act
        response = await container.retrieval_service.query(
            ACCOUNT_ID, knowledge_base.id, "anything", mode=QueryMode.ACCURATE
        )

        # Assert
        assert response.answer == NOT_FOUND_ANSWER
        assert response.credits_used == 0
        assert synthesizer.calls == []

    @pytest.mark.asyncio
    async def test_synthesis_failure_should_refund(
        self, container: ServiceContainer, populated, synthesizer
    ) -> None:
        # Arrange
        synthesizer.fail = True

        # Act / Assert
        with pytest.raises(SynthesisError):
            await container.retrieval_service.query(
                ACCOUNT_ID, populated.id, "refund window", mode=QueryMode.ACCURATE
            )
        assert await container.ledger.get_balance(ACCOUNT_ID) == STARTING_BALANCE

    @pytest.mark.asyncio
    async def test_synthesis_failure_should_raise_even_when_refund_fails(
        self, container: ServiceContainer, populated, synthesizer, monkeypatch
    ) -> None:
        """Test a ledger error during the refund is logged and the synthesis error still surfaces."""
        # Arrange
        synthesizer.fail = True
        refund = AsyncMock(side_effect=CreditLedgerError("Credit refund failed: database is locked"))
        monkeypatch.setattr(container.ledger, "refund", refund)

        # Act / Assert
        with pytest.raises(SynthesisError):
            await container.retrieval_service.query(
                ACCOUNT_ID, populated.id, "refund window", mode=QueryMode.ACCURATE
            )
        refund.assert_awaited_once_with(ACCOUNT_ID, 2, reference=f"query:{populated.id}")
        assert await container.ledger.get_balance(ACCOUNT_ID) == STARTING_BALANCE - 2


class TestQueryAccess:
    """Test suite for ownership and balance checks."""

    @pytest.mark.asyncio
    async def test_query_should_deny_other_account(self, container: ServiceContainer, populated) -> None:
        with pytest.raises(KnowledgeBaseAccessError):
            await container.retrieval_service.query(OTHER_ACCOUNT_ID, populated.id, "refunds")
        assert await container.ledger.get_balance(OTHER_ACCOUNT_ID) == STARTING_BALANCE

    @pytest.mark.asyncio
    async def test_query_should_refuse_empty_balance(self, container: ServiceContainer, populated) -> None:
        # Arrange
        await container.ledger.reserve_and_deduct(ACCOUNT_ID, STARTING_BALANCE - 1)

        # Act / Assert
        with pytest.raises(InsufficientCreditsError):
            await container.retrieval_service.query(
                ACCOUNT_ID, populated.id, "refunds", mode=QueryMode.ACCURATE
            )
        assert await container.ledger.get_balance(ACCOUNT_ID) == 1

    @pytest.mark.asyncio
    async def test_query_should_raise_for_missing_knowledge_base(self, container: ServiceContainer) -> None:
        with pytest.raises(KnowledgeBaseNotFoundError):
            await container.retrieval_service.query(ACCOUNT_ID, uuid4(), "refunds")
