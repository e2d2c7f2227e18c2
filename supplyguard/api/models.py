"""
Pydantic models for SupplyGuard data sources and reports.
"""

from typing import List, Any
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from ..core.inventory import version_string

class KnownBadEntryModel(BaseModel):
    """Model for one monitored package in the known-bad list."""
    name: str = Field(..., min_length=1, description="Package name, optionally @scope/ prefixed")
    badVersions: List[str] = Field(default_factory=list, description="Exact versions considered malicious")

    @field_validator("badVersions", mode="before")
    @classmethod
    def coerce_versions(cls, value: Any) -> Any:
        # Versions such as 14 or 1.5 may be written as JSON numbers
        if isinstance(value, list):
            return [version_string(v) for v in value]
        return value

class KnownBadListModel(BaseModel):
    """Model for the known-bad data source."""
    packages: List[KnownBadEntryModel]

class FindingModel(BaseModel):
    """Model for a single finding."""
    name: str
    version: str

class ScanSummary(BaseModel):
    """Model for scan summary."""
    total_packages: int
    lockfile_packages: int
    node_modules_packages: int
    monitored_packages: int
    total_findings: int
    diagnostics: int = 0

class ScanReport(BaseModel):
    """Model for complete scan report."""
    project_path: str
    scan_timestamp: datetime = Field(default_factory=datetime.now)
    registry_path: str = ""
    findings: List[FindingModel]
    summary: ScanSummary
