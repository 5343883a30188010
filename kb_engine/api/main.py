"""
FastAPI application with assembled routers.

Initializes FastAPI app with all API routers and configures uvicorn server.

Dependencies: fastapi, uvicorn, kb_engine.api.routers
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from kb_engine import __version__
from kb_engine.api.deps.dependencies import get_service_cache, reset_service_cache
from kb_engine.boundary.db.connection import create_schema
from kb_engine.configs import get_settings
from kb_engine.observability.logger import configure_logging
from kb_engine.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import health_router, knowledge_bases_router, parsing_jobs_router
from .routers.router_utils import request_validation_handler


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Configures logging, pre-warms the service container and, for SQLite
    databases, creates the schema.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = logging.getLogger("uvicorn")
    logger.info(f"kb-engine {__version__} starting in {settings.environment} environment")

    cache = get_service_cache()
    if settings.database.is_sqlite:
        await create_schema(cache.engine)
        logger.info("SQLite schema created")
    _ = cache.vector_store
    _ = cache.ledger
    logger.info("Service cache pre-warmed")

    yield

    await reset_service_cache()
    logger.info("Service cache cleared")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="Knowledge Base Engine API",
        description="Knowledge base ingestion, billed document parsing and semantic query",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Last added runs first: correlation id is bound before request logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(knowledge_bases_router, prefix="/api/v1")
    app.include_router(parsing_jobs_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "kb_engine.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
