"""
Background worker queue adapter.

The parsing job manager hands jobs over by id only; the worker loads
everything else from the database.

Dependencies: celery, fastapi.concurrency
System role: Enqueue-by-job-id boundary to Celery workers
"""

import logging
from abc import ABC, abstractmethod
from uuid import UUID

from celery import Celery
from fastapi.concurrency import run_in_threadpool

from kb_engine.core.exceptions import QueueError

logger = logging.getLogger(__name__)

PROCESS_PARSING_JOB_TASK = "kb_engine.process_parsing_job"


class JobQueue(ABC):
    """Queue accepting parsing job ids."""

    @abstractmethod
    async def enqueue(self, job_id: UUID) -> None:
        """Hand a job to the worker. Raises QueueError on failure."""


class CeleryJobQueue(JobQueue):
    """Queue backed by a Celery broker."""

    def __init__(self, app: Celery) -> None:
        self._app = app

    async def enqueue(self, job_id: UUID) -> None:
        try:
            result = await run_in_threadpool(
                self._app.send_task,
                PROCESS_PARSING_JOB_TASK,
                args=[str(job_id)],
            )
        except Exception as e:
            raise QueueError(f"Failed to enqueue parsing job: {e}", {"job_id": str(job_id)}) from e

        logger.info(
            f"{__name__}:enqueue - Job queued",
            extra={"job_id": str(job_id), "task_id": result.id},
        )
