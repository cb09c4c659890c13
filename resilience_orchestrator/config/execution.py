"""Worker-pool, timeout and probe heuristics for the orchestrator."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class TimeoutSettings(BaseModel):
    """Per-entry timeouts in seconds, keyed by the kind of work an entry blocks on."""
    authentication: float = Field(default=3.0, gt=0, description="Authentication and session checks")
    ai_completion: float = Field(default=15.0, gt=0, description="AI-completion probes")
    alerting: float = Field(default=5.0, gt=0, description="Email and breach-alerting probes")
    generic: float = Field(default=10.0, gt=0, description="Everything else")


class ProbeSettings(BaseModel):
    """Content heuristics applied to external probe responses."""
    ai_max_latency_ms: float = Field(default=5000.0, gt=0)
    ai_min_length: int = Field(default=50, ge=0)
    ai_placeholder_markers: List[str] = Field(default_factory=lambda: ["mock", "placeholder", "lorem ipsum"])
    ai_domain_keywords: List[str] = Field(default_factory=lambda: ["osfi", "operational risk"])
    ai_prompt: str = (
        "Summarize the key operational risk management expectations of OSFI "
        "Guideline E-21 for a federally regulated financial institution."
    )
    email_sla_ms: float = Field(default=2000.0, gt=0)
    email_recipient: str = "compliance-probe@localhost"
    breach_probe_value: float = Field(default=95.0)
    breach_threshold: float = Field(default=90.0)
    realtime_max_setup_ms: float = Field(default=1000.0, gt=0)


class ExecutionSettings(BaseModel):
    max_workers: int = Field(default=4, ge=1, le=64, description="Concurrent validation entries")
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)
    probes: ProbeSettings = Field(default_factory=ProbeSettings)
    scope: Optional[str] = Field(default=None, description="Owning-scope id used to filter repository reads")
