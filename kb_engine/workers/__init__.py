"""
Celery workers module.

Background processing of parsing jobs plus the weekly orphan cleanup.

Dependencies: celery, kb_engine.configs
System role: Background task processing
"""

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging

from kb_engine.configs import get_settings
from kb_engine.observability.logger import configure_logging

settings = get_settings()
celery_config = settings.celery

celery_app = Celery(
    "kb_engine",
    broker=celery_config.broker_url,
    backend=celery_config.result_backend_url,
    include=["kb_engine.workers.tasks.parsing", "kb_engine.workers.tasks.cleanup"],
)

celery_app.conf.update(
    task_serializer=celery_config.task_serializer,
    result_serializer=celery_config.result_serializer,
    accept_content=celery_config.accept_content,
    timezone=celery_config.timezone,
    task_max_retries=celery_config.task_max_retries,
    task_acks_late=True,
    beat_schedule={
        "cleanup-orphan-chunks": {
            "task": "kb_engine.cleanup_orphan_chunks",
            "schedule": crontab(
                minute=0,
                hour=celery_config.cleanup_hour,
                day_of_week=celery_config.cleanup_day_of_week,
            ),
        },
    },
)


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    configure_logging(settings.log_level)
