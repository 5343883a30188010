"""
Ingestion configuration settings.

Chunk sizing and embedding batch size for the ingestion pipeline.

Dependencies: pydantic, pydantic_settings
System role: Ingestion pipeline configuration
"""

from pydantic import Field, model_validator
from pydantic_settings import SettingsConfigDict

from kb_engine.configs.base import BaseSettings


class IngestionSettings(BaseSettings):
    """Chunker and embedding batch configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="INGESTION_",
        case_sensitive=False,
        extra="ignore",
    )

    chunk_size: int = Field(default=2000, gt=0, description="Maximum chunk size in characters")
    chunk_overlap: int = Field(default=200, ge=0, description="Overlap between consecutive chunks")
    embedding_batch_size: int = Field(
        default=50,
        gt=0,
        description="Number of chunks embedded per provider call",
    )

    @model_validator(mode="after")
    def _check_overlap(self) -> "IngestionSettings":
        if self.chunk_overlap >= self.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")
        return self
