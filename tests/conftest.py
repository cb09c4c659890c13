"""
Pytest Configuration for the Resilience Validation Engine
=========================================================

Root conftest.py - shared fixtures live in tests/fixtures/.
"""

import warnings

import pytest

from resilience_orchestrator.logger import ProductionLogger

# Import shared fixtures
from tests.fixtures import *  # noqa: F401,F403


def pytest_collection_modifyitems(config, items):
    """Automatically add markers based on test location."""
    for item in items:
        if "/unit/" in item.nodeid:
            item.add_marker(pytest.mark.unit)
            item.add_marker(pytest.mark.fast)
        elif "/integration/" in item.nodeid:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)

        if "/execution/" in item.nodeid:
            item.add_marker(pytest.mark.orchestrator)
        if "/cli/" in item.nodeid:
            item.add_marker(pytest.mark.cli)
        if "threading" in item.nodeid.lower() or "concurren" in item.nodeid.lower():
            item.add_marker(pytest.mark.threading)
        if "config" in item.nodeid.lower():
            item.add_marker(pytest.mark.config)
        if "duckdb" in item.nodeid.lower():
            item.add_marker(pytest.mark.database)


def pytest_runtest_setup(item):
    """Setup for each test run."""
    warnings.filterwarnings("ignore", category=DeprecationWarning)


@pytest.fixture
def batch_logger(tmp_path):
    """ProductionLogger writing into the test's temp directory."""
    logger = ProductionLogger(logs_dir=tmp_path / "logs", console=False)
    yield logger
    logger.close()
