"""
Resilience Validation Engine Version Information

This module provides centralized version management for the validation engine.
Follow Semantic Versioning 2.0.0 (https://semver.org/)

Version format: MAJOR.MINOR.PATCH
- MAJOR: Incompatible changes to the result/report contracts
- MINOR: New validation entries or checks in a backwards-compatible manner
- PATCH: Backwards-compatible bug fixes

Version History:
- 1.1.0: Worker-pool orchestrator with per-category timeouts and cancellation
  - Scoped fixture release on every exit path
  - Configurable mock-data rule sets and threshold bands
- 1.0.0: Initial release
  - Phase 1 critical-path catalog
  - Audit trail and readiness reporting
"""

from __future__ import annotations

__version__ = "1.1.0"
__version_info__ = tuple(int(x) for x in __version__.split("."))

# Release metadata
__release_date__ = "2026-10-01"
__release_name__ = "Resilience Validation Engine"

# Git information (can be populated by CI/CD or build scripts)
__git_sha__ = None
__git_branch__ = None

# Catalog version shipped with this release
__catalog_version__ = "2026.1"


def get_version() -> str:
    """Get the current version string."""
    return __version__


def get_full_version() -> str:
    """Get full version string including git info if available."""
    version = __version__
    if __git_sha__:
        version += f"+{__git_sha__[:7]}"
    return version


def get_version_dict() -> dict[str, str | tuple[int, int, int] | None]:
    """Get version information as a dictionary."""
    return {
        "version": __version__,
        "version_info": __version_info__,
        "release_date": __release_date__,
        "release_name": __release_name__,
        "catalog_version": __catalog_version__,
        "git_sha": __git_sha__,
        "git_branch": __git_branch__,
    }
