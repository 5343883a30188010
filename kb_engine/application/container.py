"""
Service container.

Builds every adapter and service once per process from settings. Any
component can be passed in explicitly, which is how tests swap in fakes;
anything not passed is created lazily on first use.

Dependencies: kb_engine.configs, kb_engine.boundary, kb_engine.core
System role: Composition root shared by the API and the worker
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from kb_engine.application.services import (
    IngestionService,
    KnowledgeBaseService,
    ParsingJobProcessor,
    ParsingJobService,
    RetrievalService,
)
from kb_engine.boundary.db.connection import get_async_engine, get_async_session_factory
from kb_engine.boundary.ledger.credit_ledger import CreditLedger, SQLCreditLedger
from kb_engine.boundary.queue.job_queue import JobQueue
from kb_engine.boundary.storage.object_storage import ObjectStorage, get_object_storage
from kb_engine.boundary.vdb.vector_store import VectorStore
from kb_engine.boundary.vdb.vector_store_factory import get_vector_store
from kb_engine.configs import Settings, get_settings
from kb_engine.core.chunking import TextChunker
from kb_engine.core.embeddings.provider import EmbeddingProvider
from kb_engine.core.parsing import DocumentParser, DocumentParserRouter
from kb_engine.core.retrieval import AnswerSynthesizer
from kb_engine.core.similarity import DuplicateDetector

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Lazily wired adapters and services."""

    def __init__(self, settings: Settings | None = None, **overrides: Any) -> None:
        """
        Initialize container.

        Args:
            settings: Application settings (loaded from env if None)
            **overrides: Pre-built components keyed by property name, e.g.
                vector_store=InMemoryVectorStore()
        """
        self.settings = settings or get_settings()
        self._components: dict[str, Any] = dict(overrides)

    def _get(self, name: str, build) -> Any:
        if name not in self._components:
            self._components[name] = build()
        return self._components[name]

    @property
    def engine(self) -> AsyncEngine:
        return self._get("engine", get_async_engine)

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._get("session_factory", lambda: get_async_session_factory(self.engine))

    @property
    def vector_store(self) -> VectorStore:
        return self._get("vector_store", lambda: get_vector_store(self.session_factory))

    @property
    def ledger(self) -> CreditLedger:
        return self._get("ledger", lambda: SQLCreditLedger(self.session_factory))

    @property
    def embeddings(self) -> EmbeddingProvider:
        def build() -> EmbeddingProvider:
            from kb_engine.core.embeddings.factory import get_embedding_provider

            return get_embedding_provider()

        return self._get("embeddings", build)

    @property
    def storage(self) -> ObjectStorage:
        return self._get("storage", get_object_storage)

    @property
    def queue(self) -> JobQueue:
        def build() -> JobQueue:
            from kb_engine.boundary.queue.job_queue import CeleryJobQueue
            from kb_engine.workers import celery_app

            return CeleryJobQueue(celery_app)

        return self._get("queue", build)

    @property
    def parser(self) -> DocumentParser:
        return self._get("parser", DocumentParserRouter)

    @property
    def synthesizer(self) -> AnswerSynthesizer:
        def build() -> AnswerSynthesizer:
            from kb_engine.core.retrieval.synthesizer import get_answer_synthesizer

            return get_answer_synthesizer()

        return self._get("synthesizer", build)

    @property
    def knowledge_base_service(self) -> KnowledgeBaseService:
        return self._get(
            "knowledge_base_service",
            lambda: KnowledgeBaseService(
                session_factory=self.session_factory,
                vector_store=self.vector_store,
                ledger=self.ledger,
                plans=self.settings.plans,
            ),
        )

    @property
    def ingestion_service(self) -> IngestionService:
        def build() -> IngestionService:
            ingestion = self.settings.ingestion
            return IngestionService(
                session_factory=self.session_factory,
                vector_store=self.vector_store,
                embeddings=self.embeddings,
                ledger=self.ledger,
                plans=self.settings.plans,
                detector=DuplicateDetector(
                    self.vector_store,
                    threshold=self.settings.vector_store.duplicate_threshold,
                ),
                chunker=TextChunker(ingestion.chunk_size, ingestion.chunk_overlap),
                batch_size=ingestion.embedding_batch_size,
            )

        return self._get("ingestion_service", build)

    @property
    def parsing_job_service(self) -> ParsingJobService:
        return self._get(
            "parsing_job_service",
            lambda: ParsingJobService(
                session_factory=self.session_factory,
                ledger=self.ledger,
                storage=self.storage,
                queue=self.queue,
                knowledge_bases=self.knowledge_base_service,
                settings=self.settings.parsing,
            ),
        )

    @property
    def parsing_job_processor(self) -> ParsingJobProcessor:
        return self._get(
            "parsing_job_processor",
            lambda: ParsingJobProcessor(
                jobs=self.parsing_job_service,
                ingestion=self.ingestion_service,
                storage=self.storage,
                parser=self.parser,
            ),
        )

    @property
    def retrieval_service(self) -> RetrievalService:
        return self._get(
            "retrieval_service",
            lambda: RetrievalService(
                vector_store=self.vector_store,
                embeddings=self.embeddings,
                ledger=self.ledger,
                knowledge_bases=self.knowledge_base_service,
                synthesizer=self.synthesizer,
                settings=self.settings.retrieval,
                default_top_k=self.settings.vector_store.default_top_k,
                max_top_k=self.settings.vector_store.max_top_k,
            ),
        )

    async def dispose(self) -> None:
        """Close the database engine if this container created or owns one."""
        engine = self._components.get("engine")
        if engine is not None:
            await engine.dispose()
            logger.info(f"{__name__}:dispose - Database engine disposed")
