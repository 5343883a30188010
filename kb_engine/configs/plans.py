"""
Subscription plan limits.

Maximum total context size per knowledge base, keyed by plan name.

Dependencies: pydantic, pydantic_settings
System role: Plan limit configuration for content size accounting
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from kb_engine.configs.base import BaseSettings


class PlanSettings(BaseSettings):
    """Per-plan context size limits."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PLAN_",
        case_sensitive=False,
        extra="ignore",
    )

    max_context_size_kb: dict[str, int] = Field(
        default={
            "free": 1000,
            "trial": 5000,
            "starter": 2000,
            "pro": 5000,
            "enterprise": 10000,
        },
        description="Maximum knowledge base content size in KB per plan",
    )
    default_plan: str = Field(default="free", description="Plan used when an account has none")

    def max_context_size_bytes(self, plan: str | None) -> int:
        """
        Resolve the byte limit for a plan, falling back to the default plan.

        Args:
            plan: Plan name (case-insensitive)

        Returns:
            int: Maximum content size in bytes
        """
        limits = self.max_context_size_kb
        key = (plan or self.default_plan).lower()
        kb = limits.get(key, limits[self.default_plan])
        return kb * 1024
