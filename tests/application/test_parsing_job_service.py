"""
Test suite for ParsingJobService and ParsingJobProcessor.

Covers credit reservation, refunds on every failure path, the status
state machine as seen by callers, worker idempotence and the full
upload -> parse -> ingest -> query flow.

System role: Verification of credit-metered document parsing
"""

from uuid import UUID, uuid4

import pytest
from sqlalchemy.exc import OperationalError

from kb_engine.application.container import ServiceContainer
from kb_engine.boundary.db.CRUD.parsing_job_crud import parsing_job_crud
from kb_engine.boundary.db.models.parsing_job_model import ParsingJobStatus, ParsingMode
from kb_engine.core.exceptions import (
    InsufficientCreditsError,
    KnowledgeBaseAccessError,
    ObjectStorageError,
    ParsingJobNotFoundError,
    QueueError,
    ValidationError,
)
from kb_engine.models.query import QueryMode
from tests.fakes import (
    ACCOUNT_ID,
    OTHER_ACCOUNT_ID,
    STARTING_BALANCE,
    FailingObjectStorage,
    RecordingJobQueue,
    StubParser,
    make_pdf,
)


class ExplodingParser(StubParser):
    def parse(self, data, file_name, mode):
        raise RuntimeError("native library crashed")


@pytest.fixture
def rewire(
    settings, engine, session_factory, vector_store, ledger, embeddings, object_storage, synthesizer
):
    """Build a container sharing the test database but with some components replaced."""

    def build(**replacements) -> ServiceContainer:
        components = dict(
            engine=engine,
            session_factory=session_factory,
            vector_store=vector_store,
            ledger=ledger,
            embeddings=embeddings,
            storage=object_storage,
            queue=RecordingJobQueue(),
            parser=StubParser(),
            synthesizer=synthesizer,
        )
        components.update(replacements)
        return ServiceContainer(settings=settings, **components)

    return build


async def job_count(session_factory) -> int:
    async with session_factory() as session:
        return len(await parsing_job_crud.get_all(session))


class TestEstimateCost:
    """Test suite for ParsingJobService.estimate_cost()."""

    def test_estimate_should_price_pdf_pages(self, container: ServiceContainer, sample_pdf: bytes) -> None:
        # Act
        estimate = container.parsing_job_service.estimate_cost(sample_pdf, "report.pdf", "premium")

        # Assert
        assert estimate.page_count == 3
        assert estimate.credits_per_page == 3
        assert estimate.credits_required == 9

    @pytest.mark.parametrize(
        ("data", "file_name"),
        [(b"", "empty.pdf"), (b"data", "image.png"), (b"data", "  ")],
    )
    def test_estimate_should_reject_invalid_upload(
        self, container: ServiceContainer, data: bytes, file_name: str
    ) -> None:
        with pytest.raises(ValidationError):
            container.parsing_job_service.estimate_cost(data, file_name, "standard")

    def test_estimate_should_reject_oversized_upload(self, container: ServiceContainer) -> None:
        # Arrange
        container.settings.parsing.max_file_size_bytes = 10

        # Act / Assert
        with pytest.raises(ValidationError):
            container.parsing_job_service.estimate_cost(b"x" * 11, "big.txt", "standard")


class TestSubmit:
    """Test suite for ParsingJobService.submit()."""

    @pytest.mark.asyncio
    async def test_submit_should_reserve_credits_and_queue_job(
        self, container: ServiceContainer, knowledge_base, sample_pdf, job_queue, object_storage
    ) -> None:
        """Test a 3-page standard parse costs 3 credits and is handed to the queue."""
        # Act
        submission = await container.parsing_job_service.submit(
            ACCOUNT_ID, knowledge_base.id, sample_pdf, "report.pdf", "standard"
        )

        # Assert
        assert submission.status == ParsingJobStatus.PENDING
        assert submission.credits_reserved == 3
        assert submission.remaining_balance == STARTING_BALANCE - 3
        assert job_queue.enqueued == [submission.job_id]

        job = await container.parsing_job_service.get_job(submission.job_id)
        assert job.object_key == f"parsing-jobs/{ACCOUNT_ID}/{submission.job_id}/report.pdf"
        assert await object_storage.get(job.object_key) == sample_pdf

    @pytest.mark.asyncio
    async def test_submit_should_create_no_job_without_credits(
        self, container: ServiceContainer, knowledge_base, session_factory
    ) -> None:
        """Test a premium_plus parse of 3 pages (18 credits) is refused with 10 credits."""
        # Act
        with pytest.raises(InsufficientCreditsError) as exc_info:
            await container.parsing_job_service.submit(
                ACCOUNT_ID, knowledge_base.id, make_pdf(3), "deck.pdf", "premium_plus"
            )

        # Assert
        assert exc_info.value.required == 18
        assert exc_info.value.available == STARTING_BALANCE
        assert await job_count(session_factory) == 0
        assert await container.ledger.get_balance(ACCOUNT_ID) == STARTING_BALANCE

    @pytest.mark.asyncio
    async def test_submit_should_deny_foreign_knowledge_base_without_charging(
        self, container: ServiceContainer, knowledge_base, sample_pdf
    ) -> None:
        with pytest.raises(KnowledgeBaseAccessError):
            await container.parsing_job_service.submit(
                OTHER_ACCOUNT_ID, knowledge_base.id, sample_pdf, "report.pdf", "standard"
            )
        assert await container.ledger.get_balance(OTHER_ACCOUNT_ID) == STARTING_BALANCE

    @pytest.mark.asyncio
    async def test_upload_failure_should_fail_job_and_refund(
        self, rewire, knowledge_base, sample_pdf, session_factory
    ) -> None:
        """Test an object storage failure leaves a FAILED job and the full balance."""
        # Arrange
        container = rewire(storage=FailingObjectStorage())

        # Act
        with pytest.raises(ObjectStorageError) as exc_info:
            await container.parsing_job_service.submit(
                ACCOUNT_ID, knowledge_base.id, sample_pdf, "report.pdf", "standard"
            )

        # Assert
        async with session_factory() as session:
            jobs = await parsing_job_crud.get_by_account(session, ACCOUNT_ID)
        assert len(jobs) == 1
        assert jobs[0].status == ParsingJobStatus.FAILED
        assert exc_info.value.details["job_id"] == str(jobs[0].id)
        assert await container.ledger.get_balance(ACCOUNT_ID) == STARTING_BALANCE

        status = await container.parsing_job_service.get_status(jobs[0].id, ACCOUNT_ID)
        assert status.credits_used == 0
        assert status.error.startswith("Upload failed")

    @pytest.mark.asyncio
    async def test_queue_failure_should_fail_job_and_refund(
        self, rewire, knowledge_base, sample_pdf
    ) -> None:
        # Arrange
        container = rewire(queue=RecordingJobQueue(fail=True))

        # Act
        with pytest.raises(QueueError) as exc_info:
            await container.parsing_job_service.submit(
                ACCOUNT_ID, knowledge_base.id, sample_pdf, "report.pdf", "standard"
            )

        # Assert
        job = await container.parsing_job_service.get_job(UUID(exc_info.value.details["job_id"]))
        assert job.status == ParsingJobStatus.FAILED
        assert await container.ledger.get_balance(ACCOUNT_ID) == STARTING_BALANCE

    @pytest.mark.asyncio
    async def test_status_update_failure_should_fail_job_and_refund(
        self, rewire, knowledge_base, sample_pdf, monkeypatch
    ) -> None:
        """Test a database error while advancing past PENDING fails the job and refunds it."""
        # Arrange
        container = rewire()
        original = parsing_job_crud.transition

        async def transition(session, job_id, to_status, **fields):
            if to_status == ParsingJobStatus.UPLOADED:
                raise OperationalError("UPDATE parsing_jobs", {}, Exception("database is locked"))
            return await original(session, job_id, to_status, **fields)

        monkeypatch.setattr(parsing_job_crud, "transition", transition)

        # Act
        with pytest.raises(OperationalError):
            await container.parsing_job_service.submit(
                ACCOUNT_ID, knowledge_base.id, sample_pdf, "report.pdf", "standard"
            )

        # Assert
        jobs = await container.parsing_job_service.list_jobs(ACCOUNT_ID)
        assert len(jobs) == 1
        assert jobs[0].status == ParsingJobStatus.FAILED
        status = await container.parsing_job_service.get_status(jobs[0].job_id)
        assert status.error.startswith("Status update failed")
        assert await container.ledger.get_balance(ACCOUNT_ID) == STARTING_BALANCE
        assert container.queue.enqueued == []


class TestJobLifecycle:
    """Test suite for status polling, fail() and complete()."""

    @pytest.mark.asyncio
    async def test_get_status_should_hide_foreign_jobs(
        self, container: ServiceContainer, knowledge_base, sample_pdf
    ) -> None:
        # Arrange
        submission = await container.parsing_job_service.submit(
            ACCOUNT_ID, knowledge_base.id, sample_pdf, "report.pdf", "standard"
        )

        # Act / Assert
        with pytest.raises(ParsingJobNotFoundError):
            await container.parsing_job_service.get_status(submission.job_id, OTHER_ACCOUNT_ID)

    @pytest.mark.asyncio
    async def test_get_status_should_raise_for_unknown_job(self, container: ServiceContainer) -> None:
        with pytest.raises(ParsingJobNotFoundError):
            await container.parsing_job_service.get_status(uuid4())

    @pytest.mark.asyncio
    async def test_fail_should_refund_only_once(
        self, container: ServiceContainer, knowledge_base, sample_pdf
    ) -> None:
        """Test a second failure report neither changes the job nor refunds again."""
        # Arrange
        service = container.parsing_job_service
        submission = await service.submit(ACCOUNT_ID, knowledge_base.id, sample_pdf, "report.pdf", "standard")

        # Act
        first = await service.fail(submission.job_id, "worker crashed")
        second = await service.fail(submission.job_id, "worker crashed again")

        # Assert
        assert first is True
        assert second is False
        assert await container.ledger.get_balance(ACCOUNT_ID) == STARTING_BALANCE
        status = await service.get_status(submission.job_id)
        assert status.error == "worker crashed"

    @pytest.mark.asyncio
    async def test_complete_should_not_override_failed_job(
        self, container: ServiceContainer, knowledge_base, sample_pdf
    ) -> None:
        # Arrange
        service = container.parsing_job_service
        submission = await service.submit(ACCOUNT_ID, knowledge_base.id, sample_pdf, "report.pdf", "standard")
        await service.fail(submission.job_id, "timeout")

        # Act
        completed = await service.complete(submission.job_id, "# late", 1.0, None)

        # Assert
        assert completed is False
        assert (await service.get_status(submission.job_id)).status == ParsingJobStatus.FAILED

    @pytest.mark.asyncio
    async def test_list_jobs_should_return_own_jobs(
        self, container: ServiceContainer, knowledge_base, sample_pdf
    ) -> None:
        # Arrange
        service = container.parsing_job_service
        await service.submit(ACCOUNT_ID, knowledge_base.id, sample_pdf, "a.pdf", "cheap")
        await service.submit(ACCOUNT_ID, knowledge_base.id, sample_pdf, "b.pdf", "cheap")

        # Act
        jobs = await service.list_jobs(ACCOUNT_ID)
        others = await service.list_jobs(OTHER_ACCOUNT_ID)

        # Assert
        assert {j.file_name for j in jobs} == {"a.pdf", "b.pdf"}
        assert all(j.mode == ParsingMode.CHEAP for j in jobs)
        assert others == []


class TestParsingJobProcessor:
    """Test suite for ParsingJobProcessor.process()."""

    @pytest.mark.asyncio
    async def test_end_to_end_parse_should_complete_and_be_queryable(
        self, container: ServiceContainer, knowledge_base, sample_pdf
    ) -> None:
        """Test upload, worker run and a fast query over the parsed output."""
        # Arrange
        submission = await container.parsing_job_service.submit(
            ACCOUNT_ID, knowledge_base.id, sample_pdf, "report.pdf", "standard"
        )

        # Act
        final = await container.parsing_job_processor.process(submission.job_id)
        status = await container.parsing_job_service.get_status(submission.job_id, ACCOUNT_ID)
        answer = await container.retrieval_service.query(
            ACCOUNT_ID, knowledge_base.id, "revenue growth third quarter", mode=QueryMode.FAST
        )

        # Assert
        assert final == ParsingJobStatus.COMPLETED
        assert status.credits_used == 3
        assert status.pages == 3
        assert status.markdown.startswith("# Quarterly report")
        assert status.source_document_id is not None
        assert status.completed_at is not None
        assert answer.results[0].metadata["source_type"] == "parsed_job"
        assert "Revenue grew" in answer.results[0].content
        assert await container.ledger.get_balance(ACCOUNT_ID) == STARTING_BALANCE - 3 - 1

    @pytest.mark.asyncio
    async def test_redelivered_job_should_not_be_processed_twice(
        self, container: ServiceContainer, knowledge_base, sample_pdf, parser
    ) -> None:
        # Arrange
        submission = await container.parsing_job_service.submit(
            ACCOUNT_ID, knowledge_base.id, sample_pdf, "report.pdf", "standard"
        )
        await container.parsing_job_processor.process(submission.job_id)

        # Act
        again = await container.parsing_job_processor.process(submission.job_id)

        # Assert
        assert again == ParsingJobStatus.COMPLETED
        assert len(parser.calls) == 1

    @pytest.mark.asyncio
    async def test_parse_failure_should_fail_job_and_refund(
        self, rewire, knowledge_base, sample_pdf
    ) -> None:
        # Arrange
        container = rewire(parser=StubParser(error="Encrypted PDF"))
        submission = await container.parsing_job_service.submit(
            ACCOUNT_ID, knowledge_base.id, sample_pdf, "report.pdf", "standard"
        )

        # Act
        final = await container.parsing_job_processor.process(submission.job_id)

        # Assert
        assert final == ParsingJobStatus.FAILED
        status = await container.parsing_job_service.get_status(submission.job_id)
        assert status.error == "Encrypted PDF"
        assert status.markdown is None
        assert await container.ledger.get_balance(ACCOUNT_ID) == STARTING_BALANCE

    @pytest.mark.asyncio
    async def test_unexpected_error_should_fail_job_and_propagate(
        self, rewire, knowledge_base, sample_pdf
    ) -> None:
        """Test a non-domain error still refunds before being re-raised."""
        # Arrange
        container = rewire(parser=ExplodingParser())
        submission = await container.parsing_job_service.submit(
            ACCOUNT_ID, knowledge_base.id, sample_pdf, "report.pdf", "standard"
        )

        # Act / Assert
        with pytest.raises(RuntimeError):
            await container.parsing_job_processor.process(submission.job_id)
        status = await container.parsing_job_service.get_status(submission.job_id)
        assert status.status == ParsingJobStatus.FAILED
        assert await container.ledger.get_balance(ACCOUNT_ID) == STARTING_BALANCE

    @pytest.mark.asyncio
    async def test_process_should_return_none_for_unknown_job(self, container: ServiceContainer) -> None:
        assert await container.parsing_job_processor.process(uuid4()) is None

    @pytest.mark.asyncio
    async def test_database_error_should_leave_job_processing_for_retry(
        self, container: ServiceContainer, knowledge_base, sample_pdf, monkeypatch
    ) -> None:
        """Test a transient store error is raised without failing or refunding, and a rerun completes."""
        # Arrange
        submission = await container.parsing_job_service.submit(
            ACCOUNT_ID, knowledge_base.id, sample_pdf, "report.pdf", "standard"
        )
        ingestion = container.ingestion_service
        original = ingestion.ingest
        calls = []

        async def ingest(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                raise OperationalError("INSERT INTO chunks", {}, Exception("database is locked"))
            return await original(*args, **kwargs)

        monkeypatch.setattr(ingestion, "ingest", ingest)

        # Act
        with pytest.raises(OperationalError):
            await container.parsing_job_processor.process(submission.job_id)
        pending = await container.parsing_job_service.get_status(submission.job_id)
        balance_after_error = await container.ledger.get_balance(ACCOUNT_ID)
        final = await container.parsing_job_processor.process(submission.job_id)

        # Assert
        assert pending.status == ParsingJobStatus.PROCESSING
        assert pending.error is None
        assert balance_after_error == STARTING_BALANCE - 3
        assert final == ParsingJobStatus.COMPLETED
        assert len(calls) == 2
        assert await container.ledger.get_balance(ACCOUNT_ID) == STARTING_BALANCE - 3
