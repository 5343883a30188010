"""
Test suite for the settings base.

System role: Verification of environment-driven configuration
"""

import pytest
from pydantic import ValidationError

from kb_engine.configs import Settings


class TestBaseSettings:
    """Test suite for fields shared by every settings class."""

    def test_defaults_should_target_local_info_logging(self, monkeypatch) -> None:
        # Arrange
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)

        # Act
        settings = Settings()

        # Assert
        assert settings.environment == "local"
        assert settings.log_level == "INFO"

    def test_log_level_should_accept_lower_case(self, monkeypatch) -> None:
        # Arrange
        monkeypatch.setenv("LOG_LEVEL", "debug")

        # Act / Assert
        assert Settings().log_level == "DEBUG"

    def test_log_level_should_reject_unknown_level(self, monkeypatch) -> None:
        # Arrange
        monkeypatch.setenv("LOG_LEVEL", "verbose")

        # Act / Assert
        with pytest.raises(ValidationError):
            Settings()
