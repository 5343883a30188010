"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory and file-backed SQLite databases, deterministic
embeddings, in-process fakes for the queue, object storage, parser and
answer synthesizer, and a fully wired ServiceContainer.
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite, pypdf
System role: Test infrastructure and fixture management
"""

from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from kb_engine.application.container import ServiceContainer
from kb_engine.boundary.db.CRUD.knowledge_base_crud import knowledge_base_crud
from kb_engine.boundary.db.connection import create_schema, get_async_session_factory
from kb_engine.boundary.db.models.knowledge_base_model import KnowledgeBaseModel
from kb_engine.boundary.ledger.credit_ledger import SQLCreditLedger
from kb_engine.boundary.storage.object_storage import LocalObjectStorage
from kb_engine.boundary.vdb.sql_store import SQLVectorStore
from kb_engine.configs import Settings
from kb_engine.core.embeddings.provider import EmbeddingProvider
from tests.fakes import (
    ACCOUNT_ID,
    DIMENSION,
    OTHER_ACCOUNT_ID,
    STARTING_BALANCE,
    HashingEmbeddings,
    RecordingJobQueue,
    RecordingSynthesizer,
    StubParser,
    make_pdf,
)


@pytest.fixture
async def engine() -> AsyncEngine:
    """
    Create in-memory SQLite async engine with the full schema.

    Yields:
        AsyncEngine: Engine sharing one connection across sessions
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return get_async_session_factory(engine)


@pytest.fixture
async def file_session_factory(tmp_path: Path):
    """
    Session factory over a file-backed SQLite database.

    Each session gets its own pooled connection, so concurrent sessions
    really interleave. The busy timeout makes writers queue for the lock.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'concurrent.db'}",
        connect_args={"timeout": 30},
    )
    await create_schema(engine)
    yield get_async_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def vector_store(session_factory) -> SQLVectorStore:
    return SQLVectorStore(session_factory)


@pytest.fixture
def hashing_embeddings() -> HashingEmbeddings:
    return HashingEmbeddings()


@pytest.fixture
def embeddings(hashing_embeddings) -> EmbeddingProvider:
    """Embedding provider without retry delays."""
    return EmbeddingProvider(
        hashing_embeddings,
        dimension=DIMENSION,
        max_attempts=1,
        backoff_initial=0.0,
        backoff_max=0.0,
    )


@pytest.fixture
async def ledger(session_factory) -> SQLCreditLedger:
    """SQL ledger with the owner and another account, both on the free plan."""
    ledger = SQLCreditLedger(session_factory)
    await ledger.open_account(ACCOUNT_ID, balance=STARTING_BALANCE, plan="free")
    await ledger.open_account(OTHER_ACCOUNT_ID, balance=STARTING_BALANCE, plan="free")
    return ledger


@pytest.fixture
async def knowledge_base(session_factory, ledger) -> KnowledgeBaseModel:
    """Knowledge base owned by ACCOUNT_ID."""
    async with session_factory() as session, session.begin():
        kb = await knowledge_base_crud.create(session, account_id=ACCOUNT_ID, name="Product docs")
    return kb


@pytest.fixture
def object_storage(tmp_path: Path) -> LocalObjectStorage:
    return LocalObjectStorage(tmp_path / "objects")


@pytest.fixture
def job_queue() -> RecordingJobQueue:
    return RecordingJobQueue()


@pytest.fixture
def parser() -> StubParser:
    return StubParser()


@pytest.fixture
def synthesizer() -> RecordingSynthesizer:
    return RecordingSynthesizer()


@pytest.fixture
def container(
    settings,
    engine,
    session_factory,
    vector_store,
    ledger,
    embeddings,
    object_storage,
    job_queue,
    parser,
    synthesizer,
) -> ServiceContainer:
    """ServiceContainer wired to the in-memory database and test fakes."""
    return ServiceContainer(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        vector_store=vector_store,
        ledger=ledger,
        embeddings=embeddings,
        storage=object_storage,
        queue=job_queue,
        parser=parser,
        synthesizer=synthesizer,
    )


@pytest.fixture
def sample_pdf() -> bytes:
    """Three-page PDF."""
    return make_pdf(3)
