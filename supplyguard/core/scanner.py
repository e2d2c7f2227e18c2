"""
Core scanner module for SupplyGuard - collects installed versions and matches them against the known-bad list.
"""

import logging
from pathlib import Path
from typing import List, Dict, Any, Iterable, Mapping, Optional, Set, Tuple, Union
from dataclasses import dataclass, field
from datetime import datetime

from .collectors import collect_from_lockfile, collect_from_node_modules
from .inventory import Inventory, merge_inventories
from .registry import KnownBadRegistry, load_registry_file, resolve_registry_path
from ..config import ScanConfig

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class Finding:
    """An installed package version that equals a known-bad version."""
    name: str
    version: str

    @property
    def key(self) -> str:
        return f"{self.name}@{self.version}"

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "version": self.version}

@dataclass
class ScanOutcome:
    """Everything one scan produced."""
    project_path: str
    findings: List[Finding]
    inventory: Inventory
    lockfile_packages: int = 0
    node_modules_packages: int = 0
    monitored_packages: int = 0
    diagnostics: List[Tuple[str, str]] = field(default_factory=list)
    registry_path: Optional[str] = None
    scan_timestamp: datetime = field(default_factory=datetime.now)

    @property
    def compromised(self) -> bool:
        return bool(self.findings)

def compare(inventory: Inventory, known_bad: Union[KnownBadRegistry, Mapping[str, Set[str]]]) -> List[Finding]:
    """Emit one finding per installed version that is in the package's bad-version set.

    Packages missing from the known-bad index are not monitored and are
    skipped. Findings follow inventory order, then sorted version order.
    """
    index = known_bad.index if isinstance(known_bad, KnownBadRegistry) else known_bad
    findings = []
    for name, versions in inventory:
        if name not in index:
            continue
        bad_versions = index[name]
        for version in sorted(versions):
            if version in bad_versions:
                findings.append(Finding(name=name, version=version))
    return findings

def dedupe_findings(findings: Iterable[Finding]) -> List[Finding]:
    """Keep the first finding for each name@version, preserving order."""
    seen = set()
    unique = []
    for finding in findings:
        if finding.key in seen:
            continue
        seen.add(finding.key)
        unique.append(finding)
    return unique

class SupplyGuardScanner:
    """Main scanner class that orchestrates collection and matching."""

    def __init__(self, config: ScanConfig):
        self.config = config
        self.diagnostics: List[Tuple[str, str]] = []

    def _record(self, path: str, reason: str) -> None:
        self.diagnostics.append((path, reason))

    def collect(self) -> Tuple[Inventory, Inventory]:
        """Run both collectors and return (lockfile, node_modules) inventories."""
        project_root = self.config.project_root
        lock_inventory = Inventory()
        tree_inventory = Inventory()

        if self.config.include_lockfile:
            lock_inventory = collect_from_lockfile(project_root, diagnostics=self._record)
        if self.config.include_node_modules:
            tree_inventory = collect_from_node_modules(
                project_root,
                max_depth=self.config.max_depth,
                diagnostics=self._record
            )
        return lock_inventory, tree_inventory

    def scan(self, registry: KnownBadRegistry) -> ScanOutcome:
        """Scan the configured project against an already-loaded registry."""
        logger.info(f"Starting scan of project: {self.config.project_root}")
        self.diagnostics = []

        lock_inventory, tree_inventory = self.collect()
        merged = merge_inventories(lock_inventory, tree_inventory)
        findings = dedupe_findings(compare(merged, registry))

        monitored = len([name for name in merged.names() if registry.is_monitored(name)])
        logger.info(
            f"Scan complete: {len(merged)} packages, {monitored} monitored, "
            f"{len(findings)} compromised"
        )

        return ScanOutcome(
            project_path=str(self.config.project_root),
            findings=findings,
            inventory=merged,
            lockfile_packages=len(lock_inventory),
            node_modules_packages=len(tree_inventory),
            monitored_packages=monitored,
            diagnostics=list(self.diagnostics),
            registry_path=registry.source
        )

def load_registry_for(config: ScanConfig) -> KnownBadRegistry:
    """Resolve and load the known-bad list for a scan configuration."""
    registry_path = resolve_registry_path(config.project_root, config.registry_path)
    logger.info(f"Using known-bad list: {registry_path}")
    return load_registry_file(registry_path)

def scan_project(project_root, registry: Optional[KnownBadRegistry] = None, **options) -> ScanOutcome:
    """Scan a project directory.

    The known-bad list is loaded before any collection runs, so an invalid
    list aborts the scan with ConfigurationError.
    """
    config = ScanConfig.from_env(Path(project_root), **options)
    if registry is None:
        registry = load_registry_for(config)
    return SupplyGuardScanner(config).scan(registry)

def outcome_to_dict(outcome: ScanOutcome) -> Dict[str, Any]:
    """Convert ScanOutcome to the JSON report shape."""
    return {
        'project_path': outcome.project_path,
        'scan_timestamp': outcome.scan_timestamp.isoformat(),
        'registry_path': outcome.registry_path or "",
        'findings': [f.to_dict() for f in outcome.findings],
        'summary': {
            'total_packages': len(outcome.inventory),
            'lockfile_packages': outcome.lockfile_packages,
            'node_modules_packages': outcome.node_modules_packages,
            'monitored_packages': outcome.monitored_packages,
            'total_findings': len(outcome.findings),
            'diagnostics': len(outcome.diagnostics)
        }
    }
