"""
Orphan chunk cleanup Celery task.

Scheduled weekly through the beat schedule in kb_engine.workers.

Dependencies: celery, kb_engine.application
System role: Periodic vector store maintenance
"""

import asyncio
import logging

from kb_engine.application.container import ServiceContainer
from kb_engine.workers import celery_app

logger = logging.getLogger(__name__)


async def _run() -> dict:
    container = ServiceContainer()
    try:
        results = await container.knowledge_base_service.cleanup_all()
    finally:
        await container.dispose()
    return {
        "knowledge_bases": len(results),
        "scanned": sum(r.scanned for r in results),
        "removed": sum(r.removed for r in results),
    }


@celery_app.task(name="kb_engine.cleanup_orphan_chunks")
def cleanup_orphan_chunks() -> dict:
    """Remove chunks whose source documents were deleted, across all knowledge bases."""
    summary = asyncio.run(_run())
    logger.info(f"{__name__}:cleanup_orphan_chunks - {summary}")
    return summary
