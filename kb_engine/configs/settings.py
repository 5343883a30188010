"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from kb_engine.configs.base import BaseSettings
from kb_engine.configs.celery_config import CelerySettings
from kb_engine.configs.database import DatabaseSettings
from kb_engine.configs.ingestion import IngestionSettings
from kb_engine.configs.parsing import ParsingSettings
from kb_engine.configs.plans import PlanSettings
from kb_engine.configs.retrieval import RetrievalSettings
from kb_engine.configs.s3_documents import S3DocumentsSettings
from kb_engine.configs.vector_store import VectorStoreSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    vector_store: VectorStoreSettings = Field(default_factory=VectorStoreSettings)
    ingestion: IngestionSettings = Field(default_factory=IngestionSettings)
    parsing: ParsingSettings = Field(default_factory=ParsingSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    plans: PlanSettings = Field(default_factory=PlanSettings)
    s3_documents: S3DocumentsSettings = Field(default_factory=S3DocumentsSettings)
    celery: CelerySettings = Field(default_factory=CelerySettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from kb_engine.configs import get_settings
        settings = get_settings()
    """
    return Settings()
