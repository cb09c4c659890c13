"""Configuration fixtures for validation testing."""

import pytest

from resilience_orchestrator.config import ValidationConfig


@pytest.fixture
def validation_config() -> ValidationConfig:
    """Default configuration, exactly as shipped."""
    return ValidationConfig()


@pytest.fixture
def fast_config() -> ValidationConfig:
    """
    Configuration with sub-second timeouts.

    Usage:
        def test_timeout(fast_config, clean_repository):
            orchestrator = ValidationOrchestrator(clean_repository, fast_config)
    """
    return ValidationConfig(
        execution={
            "max_workers": 4,
            "timeouts": {
                "authentication": 0.5,
                "ai_completion": 0.5,
                "alerting": 0.5,
                "generic": 0.5,
            },
        }
    )
