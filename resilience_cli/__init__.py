"""
Resilience Validation CLI Package

A Rich-based CLI for running validation batches, integrity scans,
readiness assessments and recurring schedules from the terminal.
"""

from .main import app
from _version import __version__, get_full_version, get_version_dict

__all__ = ["app", "__version__", "get_full_version", "get_version_dict"]
