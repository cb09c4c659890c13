"""Configuration loading and the top-level ValidationConfig model."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .compliance import ComplianceSettings
from .execution import ExecutionSettings
from .integrity import IntegritySettings
from .paths import get_default_config_path
from .performance import PerformanceSettings
from .reporting import ReportingSettings


class ValidationConfig(BaseModel):
    """Top-level config; unknown keys are kept so newer YAML loads on older code."""

    model_config = ConfigDict(extra="allow")

    environment: str = Field(default="development", description="Deployment environment label")
    catalog_version: Optional[str] = Field(default=None, description="Pin a catalog version")

    integrity: IntegritySettings = Field(default_factory=IntegritySettings)
    compliance: ComplianceSettings = Field(default_factory=ComplianceSettings)
    performance: PerformanceSettings = Field(default_factory=PerformanceSettings)
    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


def _lower_keys(d: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize dictionary keys to lowercase."""
    return {k.lower(): v for k, v in d.items()}


def _apply_env_overrides(cfg: Dict[str, Any], env: Dict[str, str], prefix: str) -> None:
    """Apply env overrides using DOUBLE-UNDERSCORE path syntax.

    Example: RES_EXECUTION__MAX_WORKERS=8 overrides execution.max_workers
    """
    plen = len(prefix)
    for key, value in env.items():
        if not key.startswith(prefix):
            continue
        path = key[plen:].lower().split("__")
        cur: Any = cfg
        for part in path[:-1]:
            if part not in cur or not isinstance(cur[part], dict):
                cur[part] = {}
            cur = cur[part]
        leaf = path[-1]
        if value.lower() in {"true", "false"}:
            cur[leaf] = value.lower() == "true"
        else:
            try:
                cur[leaf] = float(value) if "." in value else int(value)
            except ValueError:
                cur[leaf] = value


def load_validation_config(
    path: Path | str | None = None,
    *,
    env_overrides: bool = True,
    env: Optional[Dict[str, str]] = None,
    env_prefix: str = "RES_",
) -> ValidationConfig:
    """Load YAML config and return a typed `ValidationConfig`.

    - Defaults to the shipped ``config/validation_config.yaml``
    - Optionally applies ``RES_SECTION__KEY`` environment overrides
    - Raises FileNotFoundError for a missing file and ValueError for
      a file that does not validate
    """
    p = Path(path) if path is not None else get_default_config_path()
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {p}")

    with open(p, "r") as fh:
        raw = yaml.safe_load(fh) or {}

    data = _lower_keys(raw)

    if env_overrides:
        _apply_env_overrides(data, env if env is not None else dict(os.environ), env_prefix)

    try:
        return ValidationConfig(**data)
    except ValidationError as e:
        raise ValueError(f"Invalid validation configuration: {e}") from e


def dump_validation_config(config: ValidationConfig, path: Path | str) -> Path:
    """Write a config back to YAML (used to materialize defaults)."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w") as fh:
        yaml.safe_dump(config.model_dump(mode="json"), fh, sort_keys=False)
    return p
