"""Path utilities for configuration management."""

from __future__ import annotations

import os
from pathlib import Path


def get_project_root() -> Path:
    """Get project root directory.

    Returns:
        Path: Absolute path to the directory holding ``resilience_orchestrator``
    """
    # This file lives at resilience_orchestrator/config/paths.py
    return Path(__file__).resolve().parent.parent.parent


def get_default_config_path() -> Path:
    """Get the shipped ``config/validation_config.yaml`` path."""
    return get_project_root() / "config" / "validation_config.yaml"


def get_database_path() -> Path:
    """Get the repository database path with environment variable support.

    Uses ``DATABASE_PATH`` when set, otherwise ``data/resilience.duckdb``.
    The parent directory is created if missing.

    Returns:
        Path: Absolute path to the DuckDB database file
    """
    path = Path(os.getenv("DATABASE_PATH", "data/resilience.duckdb"))
    path.parent.mkdir(parents=True, exist_ok=True)
    return path.resolve()


def get_artifacts_dir() -> Path:
    """Get the directory that receives run summaries and the audit trail."""
    return Path(os.getenv("RESILIENCE_ARTIFACTS_DIR", "artifacts"))
