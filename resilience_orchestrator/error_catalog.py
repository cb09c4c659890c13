"""
Error catalog with resolution patterns for common validation failures.

Provides:
- Pattern matching for known error signatures
- Resolution suggestions that feed audit-trail remedial actions
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Pattern
import re

from .exceptions import ErrorCategory, ResilienceError, ResolutionHint


@dataclass
class ErrorPattern:
    """Pattern for identifying and resolving known errors"""

    pattern: Pattern[str]
    category: ErrorCategory
    title: str
    description: str
    resolution_hints: List[ResolutionHint]

    def matches(self, error_message: str) -> bool:
        """Check if error message matches this pattern"""
        return self.pattern.search(error_message) is not None


class ErrorCatalog:
    """
    Central repository of known error patterns and resolutions.

    Usage:
        catalog = ErrorCatalog()
        hints = catalog.find_resolution_hints("Validation 'x' timed out after 5s")
    """

    def __init__(self):
        self.patterns: List[ErrorPattern] = []
        self._initialize_patterns()

    def _initialize_patterns(self) -> None:
        """Initialize catalog with known error patterns"""

        self.patterns.append(ErrorPattern(
            pattern=re.compile(r"(timed out|timeout|deadline exceeded)", re.IGNORECASE),
            category=ErrorCategory.TIMEOUT,
            title="Probe Timeout",
            description="A repository query or external probe exceeded its category timeout",
            resolution_hints=[
                ResolutionHint(
                    title="Check Upstream Latency",
                    description="The data store or external service responded too slowly",
                    steps=[
                        "Review recent latency in the performance benchmark output",
                        "Confirm the external service status page reports no incident",
                        "Raise the category timeout only if the new value is documented",
                    ],
                    estimated_resolution_time="15-30 minutes"
                )
            ]
        ))

        self.patterns.append(ErrorPattern(
            pattern=re.compile(r"(rate.?limit|429|too many requests|quota)", re.IGNORECASE),
            category=ErrorCategory.DATA_ACCESS,
            title="Rate Limit Reached",
            description="External service rejected calls because of a rate or cost limit",
            resolution_hints=[
                ResolutionHint(
                    title="Review Cost Controls",
                    description="Burst traffic hit the configured rate limit",
                    steps=[
                        "Confirm the limit matches the contracted request budget",
                        "Spread scheduled runs so suites do not overlap",
                    ],
                    estimated_resolution_time="10 minutes"
                )
            ]
        ))

        self.patterns.append(ErrorPattern(
            pattern=re.compile(r"(table .* (does not exist|not found)|no such table|catalog error)", re.IGNORECASE),
            category=ErrorCategory.DATA_ACCESS,
            title="Missing Table",
            description="A table referenced by a check is absent from the repository",
            resolution_hints=[
                ResolutionHint(
                    title="Verify Schema Migrations",
                    description="The repository schema is behind the checks that read it",
                    steps=[
                        "Apply pending schema migrations",
                        "Confirm the table name in the integrity rule configuration",
                    ],
                    estimated_resolution_time="5 minutes"
                )
            ]
        ))

        self.patterns.append(ErrorPattern(
            pattern=re.compile(r"(mock|synthetic|placeholder|sample data)", re.IGNORECASE),
            category=ErrorCategory.THRESHOLD,
            title="Synthetic Data Detected",
            description="Sampled records look like seeded or placeholder data",
            resolution_hints=[
                ResolutionHint(
                    title="Purge Seed Data",
                    description="Production tables still carry demo or test records",
                    steps=[
                        "List records flagged in the mock-data scan evidence",
                        "Remove seed records or move them to a sandbox organization",
                        "Re-run the mock-data scan",
                    ],
                    estimated_resolution_time="30 minutes"
                )
            ]
        ))

        self.patterns.append(ErrorPattern(
            pattern=re.compile(r"(orphan|foreign key|referential)", re.IGNORECASE),
            category=ErrorCategory.THRESHOLD,
            title="Referential Integrity Violation",
            description="Child records reference parents that do not exist",
            resolution_hints=[
                ResolutionHint(
                    title="Repair Orphaned Records",
                    description="Parent rows were deleted without cascading to children",
                    steps=[
                        "Export the orphaned child ids from the evidence snapshot",
                        "Restore the missing parents or delete the orphans",
                    ],
                    estimated_resolution_time="30-60 minutes"
                )
            ]
        ))

        self.patterns.append(ErrorPattern(
            pattern=re.compile(r"(unauthori[sz]ed|forbidden|401|403|authentication|invalid api key)", re.IGNORECASE),
            category=ErrorCategory.CONFIGURATION,
            title="Authentication Failure",
            description="Credentials for the repository or an external service were rejected",
            resolution_hints=[
                ResolutionHint(
                    title="Rotate Credentials",
                    description="The configured key is missing, expired or lacks scope",
                    steps=[
                        "Check the environment variable holding the key",
                        "Issue a new key with the required scope",
                    ],
                    estimated_resolution_time="10 minutes"
                )
            ]
        ))

        self.patterns.append(ErrorPattern(
            pattern=re.compile(r"(not configured|missing .*key|no message id|misconfigured)", re.IGNORECASE),
            category=ErrorCategory.CONFIGURATION,
            title="Integration Not Configured",
            description="An external integration is absent in this environment",
            resolution_hints=[
                ResolutionHint(
                    title="Configure Integration",
                    description="Expected outside production; required before go-live",
                    steps=[
                        "Set the endpoint and API key environment variables",
                        "Send a single probe request and confirm a service id is returned",
                    ],
                    estimated_resolution_time="15 minutes"
                )
            ]
        ))

    def find_resolution_hints(self, error_message: str) -> List[ResolutionHint]:
        """
        Find resolution hints for given error message.

        Returns list of resolution hints from matching patterns.
        """
        hints = []
        for pattern in self.patterns:
            if pattern.matches(error_message):
                hints.extend(pattern.resolution_hints)
        return hints

    def enrich(self, error: ResilienceError) -> ResilienceError:
        """Attach catalog hints to an error that carries none."""
        if not error.resolution_hints:
            error.resolution_hints = self.find_resolution_hints(error.message)
        return error


# Global error catalog instance
_global_catalog: Optional[ErrorCatalog] = None


def get_error_catalog() -> ErrorCatalog:
    """Get global error catalog instance (singleton)"""
    global _global_catalog
    if _global_catalog is None:
        _global_catalog = ErrorCatalog()
    return _global_catalog
