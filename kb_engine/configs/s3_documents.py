"""
Object storage configuration.

Settings for raw upload storage: S3 bucket for deployments or a local
directory for development.

Dependencies: pydantic_settings
System role: Raw document storage configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class S3DocumentsSettings(BaseSettings):
    """Settings for raw document storage."""

    model_config = SettingsConfigDict(
        env_prefix="S3_DOCUMENTS_",
        case_sensitive=False,
        extra="ignore",
    )

    backend: str = Field(
        default="s3",
        description="Storage backend: 's3' or 'local'",
    )
    bucket: str = Field(
        default="kb-engine-dev-documents",
        description="S3 bucket for raw document storage",
    )
    region: str = Field(
        default="us-east-1",
        description="AWS region for S3 bucket",
    )
    local_root: str = Field(
        default=".kb_engine_objects",
        description="Directory used by the local storage backend",
    )
