"""Ports to the data store and external services."""

from .probes import (
    CompletionProbe,
    CompletionResponse,
    EmailProbe,
    EmailResponse,
    HttpCompletionProbe,
    HttpEmailProbe,
    HttpSessionProbe,
    ProbeSet,
    SessionInfo,
    SessionProbe,
    probes_from_env,
)
from .repository import (
    DuckDBRepository,
    InMemoryRepository,
    Record,
    Repository,
    Subscription,
    coerce_datetime,
)

__all__ = [
    "Repository",
    "Record",
    "InMemoryRepository",
    "DuckDBRepository",
    "Subscription",
    "coerce_datetime",
    "CompletionProbe",
    "CompletionResponse",
    "EmailProbe",
    "EmailResponse",
    "SessionProbe",
    "SessionInfo",
    "HttpCompletionProbe",
    "HttpEmailProbe",
    "HttpSessionProbe",
    "ProbeSet",
    "probes_from_env",
]
