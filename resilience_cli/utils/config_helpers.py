"""
Configuration helper utilities for the Resilience Validation CLI

Functions to find and load the validation config, database and
schedule store.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from resilience_orchestrator.config import (
    ValidationConfig,
    get_database_path,
    get_default_config_path,
    load_validation_config,
)


def find_default_config() -> Optional[Path]:
    """Find the validation config: ./config first, then the shipped default."""
    default_paths = [
        Path("config/validation_config.yaml"),
        Path("validation_config.yaml"),
        get_default_config_path(),
    ]

    for config_path in default_paths:
        if config_path.exists():
            return config_path

    return None


def load_config(config: Optional[str]) -> ValidationConfig:
    """Load ``config`` or the default file; built-in defaults when neither exists."""
    if config:
        return load_validation_config(Path(config))
    path = find_default_config()
    if path is None:
        return ValidationConfig()
    return load_validation_config(path)


def resolve_database(database: Optional[str]) -> Path:
    return Path(database) if database else get_database_path()


def default_schedule_store() -> Path:
    return Path("config/schedules.yaml")


def split_ids(values: Optional[List[str]]) -> Optional[List[str]]:
    """Accept ``--ids a,b`` as well as repeated ``--ids a --ids b``."""
    if not values:
        return None
    ids: List[str] = []
    for value in values:
        ids.extend(part.strip() for part in value.split(",") if part.strip())
    return ids or None
