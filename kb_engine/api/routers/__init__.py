"""API routers."""

from kb_engine.api.routers.health import router as health_router
from kb_engine.api.routers.knowledge_bases import router as knowledge_bases_router
from kb_engine.api.routers.parsing_jobs import router as parsing_jobs_router

__all__ = ["health_router", "knowledge_bases_router", "parsing_jobs_router"]
