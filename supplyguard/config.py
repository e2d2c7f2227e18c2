"""
Scan configuration for SupplyGuard.
"""

import os
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field, ValidationError

from .core.collectors import DEFAULT_MAX_DEPTH
from .core.registry import ConfigurationError

MAX_DEPTH_ENV_VAR = "SUPPLYGUARD_MAX_DEPTH"

class ScanConfig(BaseModel):
    """Model for one scan's configuration."""
    project_root: Path = Field(..., description="Project directory holding package-lock.json / node_modules")
    registry_path: Optional[Path] = Field(default=None, description="Explicit known-bad list; resolved when omitted")
    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=0, description="Deepest nested node_modules level to read")
    include_lockfile: bool = True
    include_node_modules: bool = True

    @classmethod
    def from_env(cls, project_root, **overrides) -> "ScanConfig":
        """Build a config, taking defaults from the environment.

        Explicit overrides win over the environment; ``None`` overrides are ignored.
        """
        values = {"project_root": project_root}
        max_depth = os.getenv(MAX_DEPTH_ENV_VAR)
        if max_depth:
            try:
                values["max_depth"] = int(max_depth)
            except ValueError as e:
                raise ConfigurationError(f"{MAX_DEPTH_ENV_VAR} must be an integer, got {max_depth!r}") from e
        values.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid scan configuration: {e.errors()[0].get('msg', e)}") from e
