"""
Parsing job processor.

Runs one queued job: read the upload, parse it to markdown, ingest the
markdown into the job's knowledge base, then complete or fail the job.
Re-delivered messages for finished jobs are ignored. Database and vector
store errors leave the job PROCESSING so the Celery task can retry it;
the task fails the job once its retries are spent.

Dependencies: kb_engine.application.services, kb_engine.core.parsing
System role: Background half of the parsing job lifecycle
"""

import logging
import time
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from kb_engine.application.services.ingestion_service import IngestionService
from kb_engine.application.services.parsing_job_service import ParsingJobService
from kb_engine.boundary.db.models.parsing_job_model import ParsingJobStatus
from kb_engine.boundary.storage.object_storage import ObjectStorage
from kb_engine.core.exceptions import (
    KnowledgeEngineException,
    ParsingJobNotFoundError,
    VectorStoreError,
)
from kb_engine.core.parsing import DocumentParser
from kb_engine.models.source import ParsedJobSource

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (SQLAlchemyError, VectorStoreError)


class ParsingJobProcessor:
    """Executes parsing jobs handed over by the queue."""

    def __init__(
        self,
        jobs: ParsingJobService,
        ingestion: IngestionService,
        storage: ObjectStorage,
        parser: DocumentParser,
    ) -> None:
        self.jobs = jobs
        self.ingestion = ingestion
        self.storage = storage
        self.parser = parser

    async def process(self, job_id: UUID) -> ParsingJobStatus | None:
        """
        Process a job to a terminal state.

        Args:
            job_id: Job to run

        Returns:
            Final job status, or None when the job does not exist

        Raises:
            SQLAlchemyError / VectorStoreError: Transient store failure; the
                job is still PROCESSING and may be retried
        """
        try:
            job = await self.jobs.get_job(job_id)
        except ParsingJobNotFoundError:
            logger.error(f"{__name__}:process - Unknown job {job_id}")
            return None

        if job.status.is_terminal:
            logger.info(f"{__name__}:process - job={job_id} already {job.status.value}, skipping")
            return job.status
        if job.status != ParsingJobStatus.PROCESSING:
            logger.warning(f"{__name__}:process - job={job_id} is {job.status.value}, not runnable")
            return job.status

        started = time.perf_counter()
        logger.info(f"{__name__}:process - START job={job_id} file={job.file_name}")

        try:
            data = await self.storage.get(job.object_key)
            parsed = await run_in_threadpool(self.parser.parse, data, job.file_name, job.mode)
            result = await self.ingestion.ingest(
                job.knowledge_base_id,
                parsed.markdown,
                source=ParsedJobSource(
                    job_id=job.id,
                    file_name=job.file_name,
                    mode=job.mode.value,
                    pages=parsed.pages,
                ),
                source_label=job.file_name,
            )
        except RETRYABLE_ERRORS as e:
            logger.warning(
                f"{__name__}:process - job={job_id} left PROCESSING after {type(e).__name__}, "
                f"retry expected"
            )
            raise
        except KnowledgeEngineException as e:
            await self.jobs.fail(job_id, e.message)
            return await self._status(job_id)
        except Exception as e:
            await self.jobs.fail(job_id, f"Internal error: {type(e).__name__}")
            raise

        if not result.success:
            await self.jobs.fail(job_id, result.error or "Ingestion failed")
            return await self._status(job_id)

        elapsed = time.perf_counter() - started
        await self.jobs.complete(job_id, parsed.markdown, elapsed, result.source_document_id)
        logger.info(
            f"{__name__}:process - DONE job={job_id} chunks_created={result.chunks_created} "
            f"skipped={result.chunks_skipped} failed={result.chunks_failed}"
        )
        return await self._status(job_id)

    async def _status(self, job_id: UUID) -> ParsingJobStatus:
        return (await self.jobs.get_job(job_id)).status
