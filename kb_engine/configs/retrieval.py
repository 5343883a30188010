"""
Retrieval configuration settings.

Query billing rates and the language model used for accurate-mode synthesis.

Dependencies: pydantic, pydantic_settings
System role: Retrieval service configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from kb_engine.configs.base import BaseSettings


class RetrievalSettings(BaseSettings):
    """Query pricing and synthesis model configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RETRIEVAL_",
        case_sensitive=False,
        extra="ignore",
    )

    fast_query_credits: int = Field(default=1, ge=0, description="Credits per fast query")
    accurate_query_credits: int = Field(default=2, ge=0, description="Credits per accurate query")

    synthesis_model: str = Field(
        default="gemini-2.5-flash",
        description="Google Gemini chat model used for answer synthesis",
    )
    synthesis_temperature: float = Field(default=0.0, description="Synthesis temperature")
    synthesis_max_output_tokens: int = Field(default=1024, description="Synthesis token cap")
