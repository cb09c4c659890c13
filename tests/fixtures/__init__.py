"""
Shared test fixtures for the validation engine

- datasets.py: realistic operational tables and mock-data variants
- probes.py: in-process fakes for the completion, email and session probes
- config.py: configuration fixtures with short timeouts
"""

from .config import fast_config, validation_config
from .datasets import clean_repository, clean_tables, mocked_rows
from .probes import FakeCompletionProbe, FakeEmailProbe, FakeSessionProbe, all_probes

__all__ = [
    # Configuration fixtures
    "fast_config",
    "validation_config",

    # Dataset fixtures
    "clean_repository",
    "clean_tables",
    "mocked_rows",

    # Probe fakes
    "FakeCompletionProbe",
    "FakeEmailProbe",
    "FakeSessionProbe",
    "all_probes",
]
