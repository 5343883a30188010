"""
Parsing job configuration settings.

Per-mode credit rates, upload limits and object key layout for the
asynchronous document parsing path.

Dependencies: pydantic, pydantic_settings
System role: Parsing job pricing and limits configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from kb_engine.configs.base import BaseSettings


class ParsingSettings(BaseSettings):
    """Parsing job configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PARSING_",
        case_sensitive=False,
        extra="ignore",
    )

    credits_per_page: dict[str, int] = Field(
        default={
            "cheap": 0,
            "standard": 1,
            "premium": 3,
            "premium_plus": 6,
        },
        description="Credits charged per page for each parsing mode",
    )
    max_file_size_bytes: int = Field(
        default=50 * 1024 * 1024,
        description="Largest accepted upload (50 MB)",
    )
    non_pdf_page_estimate: int = Field(
        default=5,
        description="Page count assumed for files whose pages cannot be counted",
    )
    supported_extensions: list[str] = Field(
        default=[".pdf", ".txt", ".md", ".markdown"],
        description="File extensions accepted for parsing",
    )
    object_key_prefix: str = Field(
        default="parsing-jobs",
        description="Object storage prefix for raw uploads",
    )
    list_limit: int = Field(default=50, description="Default page size when listing jobs")
