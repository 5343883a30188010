"""
Retrieval service.

Answers queries against one knowledge base. FAST returns ranked chunks;
ACCURATE also synthesizes an answer from them. Credits are charged only
after retrieval succeeds and only when something was found.

Dependencies: kb_engine.boundary (vdb, ledger), kb_engine.core (embeddings, retrieval)
System role: Query orchestration and billing
"""

import logging
import time
from uuid import UUID

from kb_engine.application.services.knowledge_base_service import KnowledgeBaseService
from kb_engine.boundary.ledger.credit_ledger import CreditLedger
from kb_engine.boundary.vdb.vector_store import VectorStore
from kb_engine.configs.retrieval import RetrievalSettings
from kb_engine.core.embeddings.provider import EmbeddingProvider
from kb_engine.core.exceptions import InsufficientCreditsError, SynthesisError, ValidationError
from kb_engine.core.retrieval import NOT_FOUND_ANSWER, AnswerSynthesizer
from kb_engine.models.query import QueryMode, QueryResponse, QueryResultItem

logger = logging.getLogger(__name__)


class RetrievalService:
    """Query orchestrator."""

    def __init__(
        self,
        vector_store: VectorStore,
        embeddings: EmbeddingProvider,
        ledger: CreditLedger,
        knowledge_bases: KnowledgeBaseService,
        synthesizer: AnswerSynthesizer,
        settings: RetrievalSettings,
        default_top_k: int = 5,
        max_top_k: int = 20,
    ) -> None:
        """
        Initialize retrieval service.

        Args:
            vector_store: Chunk storage to rank
            embeddings: Embedding provider shared with ingestion
            ledger: Credit ledger charged per query
            knowledge_bases: Ownership checks
            synthesizer: Answer synthesizer for accurate mode
            settings: Query rates
            default_top_k: top_k used when the caller gives none
            max_top_k: Upper bound on top_k
        """
        self.vector_store = vector_store
        self.embeddings = embeddings
        self.ledger = ledger
        self.knowledge_bases = knowledge_bases
        self.synthesizer = synthesizer
        self.settings = settings
        self.default_top_k = default_top_k
        self.max_top_k = max_top_k

    def query_cost(self, mode: QueryMode) -> int:
        if mode == QueryMode.ACCURATE:
            return self.settings.accurate_query_credits
        return self.settings.fast_query_credits

    async def query(
        self,
        account_id: str,
        knowledge_base_id: UUID,
        query: str,
        mode: QueryMode = QueryMode.FAST,
        top_k: int | None = None,
        source_document_id: UUID | None = None,
    ) -> QueryResponse:
        """
        Query a knowledge base.

        Args:
            account_id: Caller; must own the knowledge base
            knowledge_base_id: Knowledge base to search
            query: Natural language query
            mode: FAST or ACCURATE
            top_k: Number of chunks to return
            source_document_id: Optional filter to one source document

        Returns:
            QueryResponse: ranked results, optional answer and credits used

        Raises:
            ValidationError: Empty query or top_k out of range
            KnowledgeBaseNotFoundError / KnowledgeBaseAccessError: Bad target
            InsufficientCreditsError: Balance below the query cost
            EmbeddingError: Query could not be embedded
            SynthesisError: Accurate-mode synthesis failed; the charge is refunded
        """
        started = time.perf_counter()

        if not query or not query.strip():
            raise ValidationError("Query must not be empty", field="query")
        if top_k is None:
            top_k = self.default_top_k
        if not 1 <= top_k <= self.max_top_k:
            raise ValidationError(f"top_k must be between 1 and {self.max_top_k}", field="top_k")

        await self.knowledge_bases.authorize(account_id, knowledge_base_id)

        cost = self.query_cost(mode)
        balance = await self.ledger.get_balance(account_id)
        if balance < cost:
            raise InsufficientCreditsError(account_id, cost, balance)

        vector = await self.embeddings.embed_query(query)
        results = await self.vector_store.query(
            knowledge_base_id, vector, top_k, source_document_id=source_document_id
        )

        items = [
            QueryResultItem(
                content=r.content,
                score=r.score,
                metadata=r.metadata.model_dump(mode="json"),
            )
            for r in results
        ]

        if not items:
            logger.info(f"{__name__}:query - No results in kb={knowledge_base_id}, not charged")
            return QueryResponse(
                mode=mode,
                results=[],
                answer=NOT_FOUND_ANSWER if mode == QueryMode.ACCURATE else None,
                credits_used=0,
                processing_time_ms=(time.perf_counter() - started) * 1000,
            )

        deduction = await self.ledger.reserve_and_deduct(
            account_id, cost, reference=f"query:{knowledge_base_id}"
        )
        if not deduction.success:
            raise InsufficientCreditsError(account_id, cost, deduction.remaining_balance)

        answer = None
        if mode == QueryMode.ACCURATE:
            try:
                answer = await self.synthesizer.synthesize(query, [item.content for item in items])
            except SynthesisError:
                await self._refund(account_id, cost, knowledge_base_id)
                raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{__name__}:query - kb={knowledge_base_id} mode={mode.value} "
            f"results={len(items)} credits={cost} in {elapsed_ms:.1f}ms"
        )
        return QueryResponse(
            mode=mode,
            results=items,
            answer=answer,
            credits_used=cost,
            processing_time_ms=elapsed_ms,
        )

    async def _refund(self, account_id: str, cost: int, knowledge_base_id: UUID) -> None:
        """Return a query charge after synthesis failed; a ledger error is logged, not raised."""
        try:
            balance = await self.ledger.refund(account_id, cost, reference=f"query:{knowledge_base_id}")
        except Exception:
            logger.exception(
                f"{__name__}:_refund - REFUND FAILED account={account_id} credits={cost} "
                f"kb={knowledge_base_id}; manual reconciliation required"
            )
            return
        logger.warning(
            f"{__name__}:_refund - Synthesis failed, refunded {cost} to {account_id} (balance={balance})"
        )
