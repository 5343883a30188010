"""Background worker queue."""

from kb_engine.boundary.queue.job_queue import (
    PROCESS_PARSING_JOB_TASK,
    CeleryJobQueue,
    JobQueue,
)

__all__ = ["PROCESS_PARSING_JOB_TASK", "CeleryJobQueue", "JobQueue"]
