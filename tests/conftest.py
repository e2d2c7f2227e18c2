"""Shared test fixtures for SupplyGuard tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from supplyguard.core.registry import KnownBadRegistry, load_registry


KNOWN_BAD_DATA = {
    "packages": [
        {"name": "test-package-1", "badVersions": ["1.0.0", "1.0.1"]},
        {"name": "test-package-2", "badVersions": ["2.1.0"]},
        {"name": "@scope/test-package", "badVersions": ["3.0.0", "3.0.1", "3.0.2"]},
        {"name": "safe-package", "badVersions": []},
    ]
}


def write_json(path: Path, data: Any) -> Path:
    """Write JSON data to a file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


def install_package(modules_dir: Path, name: str, version: str, manifest_name: str | None = None) -> Path:
    """Create ``<modules_dir>/<name>/package.json`` and return the package directory."""
    package_dir = modules_dir.joinpath(*name.split("/"))
    write_json(package_dir / "package.json", {"name": manifest_name or name, "version": version})
    return package_dir


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty project directory."""
    root = tmp_path / "project"
    root.mkdir()
    return root


@pytest.fixture
def known_bad() -> KnownBadRegistry:
    return load_registry(KNOWN_BAD_DATA)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep a developer's SUPPLYGUARD_* variables out of the tests."""
    monkeypatch.delenv("SUPPLYGUARD_REGISTRY", raising=False)
    monkeypatch.delenv("SUPPLYGUARD_MAX_DEPTH", raising=False)
