"""
Vector store configuration settings.

Selects the vector store backend and holds embedding model settings,
duplicate detection threshold, and query bounds.

Dependencies: pydantic, pydantic_settings
System role: Vector storage and similarity configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from kb_engine.configs.base import BaseSettings


class VectorStoreSettings(BaseSettings):
    """Vector store configuration (SQL for deployments, in-memory for local dev)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VECTOR_STORE_",
        case_sensitive=False,
        extra="ignore",
    )

    store_type: str = Field(
        default="sql",
        description="Vector store type: 'sql' (database backed) or 'memory' (process local)",
    )

    embedding_model: str = Field(
        default="models/gemini-embedding-001",
        description="Google Gemini embedding model ID",
    )
    embedding_dimension: int = Field(
        default=1024,
        description="Embedding vector dimension shared by ingestion and query",
    )
    embedding_max_attempts: int = Field(
        default=4,
        description="Attempts per embedding call before the chunk is reported failed",
    )
    embedding_backoff_initial: float = Field(
        default=1.0,
        description="Initial retry backoff in seconds",
    )
    embedding_backoff_max: float = Field(
        default=20.0,
        description="Maximum retry backoff in seconds",
    )

    duplicate_threshold: float = Field(
        default=0.85,
        ge=-1.0,
        le=1.0,
        description="Cosine similarity at or above which a chunk is a duplicate",
    )

    default_top_k: int = Field(default=5, description="Default number of query results")
    max_top_k: int = Field(default=20, description="Upper bound accepted for top_k")
