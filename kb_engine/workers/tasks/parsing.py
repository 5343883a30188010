"""
Parsing job Celery task.

Async task: process_parsing_job(job_id)
Flow: read upload -> parse -> ingest -> complete (or fail + refund)

Database and vector store errors are retried with backoff. Once the
retries are spent, on_failure fails the job and refunds its credits.

Dependencies: celery, kb_engine.application
System role: Worker entry point for queued parsing jobs
"""

import asyncio
import logging
from uuid import UUID

from celery import Task

from kb_engine.application.container import ServiceContainer
from kb_engine.application.services.parsing_worker import RETRYABLE_ERRORS
from kb_engine.boundary.queue.job_queue import PROCESS_PARSING_JOB_TASK
from kb_engine.workers import celery_app, celery_config

logger = logging.getLogger(__name__)


async def _run(job_id: UUID) -> str | None:
    container = ServiceContainer()
    try:
        status = await container.parsing_job_processor.process(job_id)
    finally:
        await container.dispose()
    return status.value if status else None


async def _fail(job_id: UUID, error: str) -> bool:
    container = ServiceContainer()
    try:
        return await container.parsing_job_service.fail(job_id, error)
    finally:
        await container.dispose()


class ParsingJobTask(Task):
    """Task base that fails and refunds the job when Celery gives up on it."""

    def on_failure(self, exc, task_id, args, kwargs, einfo) -> None:
        job_id = args[0] if args else kwargs["job_id"]
        logger.error(
            f"{__name__}:on_failure - job={job_id} task={task_id} gave up after "
            f"{type(exc).__name__}: {exc}"
        )
        # No-op when the processor already moved the job to a terminal state
        asyncio.run(_fail(UUID(job_id), f"Internal error: {type(exc).__name__}"))


@celery_app.task(
    bind=True,
    base=ParsingJobTask,
    name=PROCESS_PARSING_JOB_TASK,
    max_retries=celery_config.task_max_retries,
    autoretry_for=RETRYABLE_ERRORS,
    retry_backoff=celery_config.task_retry_backoff,
    retry_backoff_max=celery_config.task_retry_backoff_max,
)
def process_parsing_job(self, job_id: str) -> dict:
    """
    Run one parsing job to a terminal state.

    Re-delivery of a finished job is a no-op, so retries are safe.

    Args:
        job_id: Job UUID as string

    Returns:
        dict: job_id and final status
    """
    logger.info(f"{__name__}:process_parsing_job - job={job_id} attempt={self.request.retries + 1}")
    status = asyncio.run(_run(UUID(job_id)))
    return {"job_id": job_id, "status": status}
