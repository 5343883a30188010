"""
Parsing job service.

Submission path: validate -> count pages -> price -> deduct credits ->
record job (PENDING) -> upload (UPLOADED) -> enqueue (PROCESSING).
Any failure after the deduction fails the job and refunds the reserved
credits exactly once; the refund outcome is always logged.

Dependencies: kb_engine.boundary (db, ledger, storage, queue), kb_engine.core.parsing
System role: Parsing job lifecycle and billing orchestration
"""

import logging
from pathlib import PurePosixPath
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kb_engine.application.services.knowledge_base_service import KnowledgeBaseService
from kb_engine.boundary.db.CRUD.parsing_job_crud import parsing_job_crud
from kb_engine.boundary.db.models.parsing_job_model import (
    ParsingJobModel,
    ParsingJobStatus,
    ParsingMode,
)
from kb_engine.boundary.ledger.credit_ledger import CreditLedger
from kb_engine.boundary.queue.job_queue import JobQueue
from kb_engine.boundary.storage.object_storage import ObjectStorage
from kb_engine.configs.parsing import ParsingSettings
from kb_engine.core.exceptions import (
    InsufficientCreditsError,
    InvalidJobTransitionError,
    ObjectStorageError,
    ParsingJobNotFoundError,
    QueueError,
    ValidationError,
)
from kb_engine.core.parsing import ParsingCostCalculator, count_pages, is_pdf
from kb_engine.models.parsing_job import (
    CostEstimate,
    ParsingJobStatusResponse,
    ParsingJobSubmission,
    ParsingJobSummary,
)

logger = logging.getLogger(__name__)


class ParsingJobService:
    """
    Parsing job orchestrator.

    Credits are deducted before the job row exists, so an account without
    enough balance never gets a job.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ledger: CreditLedger,
        storage: ObjectStorage,
        queue: JobQueue,
        knowledge_bases: KnowledgeBaseService,
        settings: ParsingSettings,
        calculator: ParsingCostCalculator | None = None,
    ) -> None:
        """
        Initialize parsing job service.

        Args:
            session_factory: Factory for relational sessions
            ledger: Credit ledger charged per page
            storage: Object storage for raw uploads
            queue: Worker queue
            knowledge_bases: Ownership checks
            settings: Parsing limits and rates
            calculator: Cost calculator (built from settings if None)
        """
        self.session_factory = session_factory
        self.ledger = ledger
        self.storage = storage
        self.queue = queue
        self.knowledge_bases = knowledge_bases
        self.settings = settings
        self.calculator = calculator or ParsingCostCalculator(settings.credits_per_page)

    def _validate_upload(self, data: bytes, file_name: str) -> None:
        if not file_name or not file_name.strip():
            raise ValidationError("File name is required", field="file_name")
        suffix = PurePosixPath(file_name).suffix.lower()
        if suffix not in self.settings.supported_extensions:
            raise ValidationError(
                f"Unsupported file type: {suffix or file_name}",
                field="file",
                details={"supported": self.settings.supported_extensions},
            )
        if not data:
            raise ValidationError("File is empty", field="file")
        if len(data) > self.settings.max_file_size_bytes:
            raise ValidationError(
                f"File exceeds {self.settings.max_file_size_bytes} bytes",
                field="file",
                details={"size_bytes": len(data)},
            )

    def estimate_cost(self, data: bytes, file_name: str, mode: str | ParsingMode) -> CostEstimate:
        """
        Price a parse without charging for it.

        Raises:
            ValidationError: Invalid file, unreadable PDF or unknown mode
        """
        self._validate_upload(data, file_name)
        parsed_mode = self.calculator.parse_mode(mode)
        pages = count_pages(data, file_name, self.settings.non_pdf_page_estimate)
        return CostEstimate(
            file_name=file_name,
            mode=parsed_mode,
            page_count=pages,
            credits_per_page=self.calculator.credits_per_page(parsed_mode),
            credits_required=self.calculator.cost(parsed_mode, pages),
        )

    async def submit(
        self,
        account_id: str,
        knowledge_base_id: UUID,
        data: bytes,
        file_name: str,
        mode: str | ParsingMode,
    ) -> ParsingJobSubmission:
        """
        Charge for and queue a parsing job.

        Args:
            account_id: Account charged for the parse
            knowledge_base_id: Knowledge base receiving the output
            data: Raw upload bytes
            file_name: Original file name
            mode: Parsing mode

        Returns:
            ParsingJobSubmission: job id and its creation status (PENDING);
                callers poll get_status for progress

        Raises:
            ValidationError: Invalid file or mode
            KnowledgeBaseNotFoundError / KnowledgeBaseAccessError: Bad target
            InsufficientCreditsError: Balance below the cost; no job is created
            ObjectStorageError / QueueError: Hand-off failed; the job is FAILED
                and its credits refunded
            SQLAlchemyError / InvalidJobTransitionError: Status update failed;
                the job is FAILED and its credits refunded
        """
        estimate = self.estimate_cost(data, file_name, mode)
        await self.knowledge_bases.authorize(account_id, knowledge_base_id)

        job_id = uuid4()
        credits = estimate.credits_required
        deduction = await self.ledger.reserve_and_deduct(account_id, credits, reference=str(job_id))
        if not deduction.success:
            logger.info(
                f"{__name__}:submit - account={account_id} needs {credits}, "
                f"has {deduction.remaining_balance}"
            )
            raise InsufficientCreditsError(account_id, credits, deduction.remaining_balance)

        object_key = f"{self.settings.object_key_prefix}/{account_id}/{job_id}/{PurePosixPath(file_name).name}"
        try:
            async with self.session_factory() as session, session.begin():
                await parsing_job_crud.create(
                    session,
                    id=job_id,
                    account_id=account_id,
                    knowledge_base_id=knowledge_base_id,
                    file_name=file_name,
                    file_size_bytes=len(data),
                    mode=estimate.mode,
                    page_count=estimate.page_count,
                    credits_reserved=credits,
                    status=ParsingJobStatus.PENDING,
                    object_key=object_key,
                )
        except SQLAlchemyError:
            logger.exception(f"{__name__}:submit - Could not record job {job_id}")
            await self._refund(account_id, credits, job_id)
            raise

        logger.info(
            f"{__name__}:submit - job={job_id} account={account_id} pages={estimate.page_count} "
            f"mode={estimate.mode.value} credits={credits}"
        )

        content_type = "application/pdf" if is_pdf(file_name, data) else "text/plain"
        try:
            await self.storage.put(object_key, data, content_type=content_type)
        except ObjectStorageError as e:
            await self.fail(job_id, f"Upload failed: {e.message}")
            e.details.setdefault("job_id", str(job_id))
            raise

        try:
            await self._transition(job_id, ParsingJobStatus.UPLOADED)
            await self._transition(job_id, ParsingJobStatus.PROCESSING)
        except (SQLAlchemyError, InvalidJobTransitionError) as e:
            logger.exception(f"{__name__}:submit - Status update failed for job {job_id}")
            await self.fail(job_id, f"Status update failed: {type(e).__name__}")
            raise

        try:
            await self.queue.enqueue(job_id)
        except QueueError as e:
            await self.fail(job_id, f"Enqueue failed: {e.message}")
            e.details.setdefault("job_id", str(job_id))
            raise

        return ParsingJobSubmission(
            job_id=job_id,
            status=ParsingJobStatus.PENDING,
            page_count=estimate.page_count,
            credits_reserved=credits,
            remaining_balance=deduction.remaining_balance,
        )

    async def get_job(self, job_id: UUID) -> ParsingJobModel:
        """
        Raises:
            ParsingJobNotFoundError: If the job does not exist
        """
        async with self.session_factory() as session:
            job = await parsing_job_crud.get_by_id(session, job_id)
        if job is None:
            raise ParsingJobNotFoundError(str(job_id))
        return job

    async def get_status(self, job_id: UUID, account_id: str | None = None) -> ParsingJobStatusResponse:
        """
        Poll a job.

        Jobs owned by another account are reported as not found.

        Raises:
            ParsingJobNotFoundError: Unknown job or foreign account
        """
        job = await self.get_job(job_id)
        if account_id is not None and job.account_id != account_id:
            raise ParsingJobNotFoundError(str(job_id))

        completed = job.status == ParsingJobStatus.COMPLETED
        return ParsingJobStatusResponse(
            job_id=job.id,
            status=job.status,
            file_name=job.file_name,
            mode=job.mode,
            credits_used=0 if job.status == ParsingJobStatus.FAILED else job.credits_reserved,
            pages=job.page_count if completed else None,
            processing_time_seconds=job.processing_time_seconds,
            markdown=job.result_markdown if completed else None,
            error=job.error_message,
            source_document_id=job.source_document_id,
            created_at=job.created_at,
            completed_at=job.completed_at,
        )

    async def list_jobs(self, account_id: str, limit: int | None = None) -> list[ParsingJobSummary]:
        """An account's jobs, newest first."""
        async with self.session_factory() as session:
            jobs = await parsing_job_crud.get_by_account(
                session, account_id, limit or self.settings.list_limit
            )
        return [
            ParsingJobSummary(
                job_id=job.id,
                knowledge_base_id=job.knowledge_base_id,
                status=job.status,
                file_name=job.file_name,
                mode=job.mode,
                page_count=job.page_count,
                credits_reserved=job.credits_reserved,
                created_at=job.created_at,
                completed_at=job.completed_at,
            )
            for job in jobs
        ]

    async def complete(
        self,
        job_id: UUID,
        markdown: str,
        processing_time_seconds: float,
        source_document_id: UUID | None,
    ) -> bool:
        """
        Mark a PROCESSING job COMPLETED.

        Returns:
            bool: False if the job had already left PROCESSING
        """
        async with self.session_factory() as session, session.begin():
            job = await parsing_job_crud.transition(
                session,
                job_id,
                ParsingJobStatus.COMPLETED,
                result_markdown=markdown,
                processing_time_seconds=processing_time_seconds,
                source_document_id=source_document_id,
            )
        if job is None:
            logger.warning(f"{__name__}:complete - job={job_id} was no longer PROCESSING")
            return False
        logger.info(f"{__name__}:complete - job={job_id} in {processing_time_seconds:.2f}s")
        return True

    async def fail(self, job_id: UUID, error: str) -> bool:
        """
        Mark a job FAILED and refund its credits.

        Only the caller whose transition succeeds issues the refund, so a
        job is refunded at most once.

        Returns:
            bool: False if the job was already terminal or missing
        """
        async with self.session_factory() as session, session.begin():
            job = await parsing_job_crud.transition(
                session,
                job_id,
                ParsingJobStatus.FAILED,
                error_message=error,
            )
            account_id = job.account_id if job else None
            credits = job.credits_reserved if job else 0

        if job is None:
            logger.warning(f"{__name__}:fail - job={job_id} already terminal, no refund")
            return False

        logger.error(f"{__name__}:fail - job={job_id} FAILED: {error}")
        await self._refund(account_id, credits, job_id)
        return True

    async def _refund(self, account_id: str, credits: int, job_id: UUID) -> None:
        """Refund a job's credits, logging the outcome either way."""
        if credits == 0:
            return
        try:
            balance = await self.ledger.refund(account_id, credits, reference=str(job_id))
        except Exception:
            logger.exception(
                f"{__name__}:_refund - REFUND FAILED job={job_id} account={account_id} "
                f"credits={credits}; manual reconciliation required"
            )
            return
        logger.warning(
            f"{__name__}:_refund - Refunded job={job_id} account={account_id} "
            f"credits={credits} balance={balance}"
        )

    async def _transition(self, job_id: UUID, to_status: ParsingJobStatus) -> None:
        async with self.session_factory() as session, session.begin():
            job = await parsing_job_crud.transition(session, job_id, to_status)
        if job is None:
            logger.warning(f"{__name__}:_transition - job={job_id} could not move to {to_status.value}")
            raise InvalidJobTransitionError(
                f"Job {job_id} cannot move to {to_status.value}",
                {"job_id": str(job_id), "to_status": to_status.value},
            )
