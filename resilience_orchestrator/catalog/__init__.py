"""Versioned registry of validation entries."""

from .models import Priority, TimeoutClass, ValidationCategory, ValidationSpec
from .registry import DEFAULT_SPECS, ValidationCatalog, build_default_catalog

__all__ = [
    "Priority",
    "TimeoutClass",
    "ValidationCategory",
    "ValidationSpec",
    "ValidationCatalog",
    "DEFAULT_SPECS",
    "build_default_catalog",
]
