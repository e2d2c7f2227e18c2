"""Tests for the known-bad registry: validation, coercion, indexing, path resolution."""

from __future__ import annotations

import pytest

from supplyguard.core import registry as registry_module
from supplyguard.core.registry import (
    ConfigurationError,
    load_registry,
    load_registry_file,
    resolve_registry_path,
)

from conftest import KNOWN_BAD_DATA, write_json


def test_index_maps_names_to_version_sets(known_bad):
    """Index holds one set of bad versions per monitored name."""
    assert known_bad.index["test-package-1"] == {"1.0.0", "1.0.1"}
    assert known_bad.index["@scope/test-package"] == {"3.0.0", "3.0.1", "3.0.2"}
    assert known_bad.index["safe-package"] == set()


def test_entries_keep_display_order(known_bad):
    assert [e.name for e in known_bad] == [p["name"] for p in KNOWN_BAD_DATA["packages"]]
    assert known_bad.entries[0].bad_versions == ["1.0.0", "1.0.1"]
    assert len(known_bad) == 4


def test_numeric_versions_are_coerced_to_strings():
    """Versions given as JSON numbers match their string form."""
    reg = load_registry({"packages": [{"name": "numeric", "badVersions": [14, 1.5, "2.0.0"]}]})
    assert reg.index["numeric"] == {"14", "1.5", "2.0.0"}


def test_missing_bad_versions_defaults_to_empty():
    reg = load_registry({"packages": [{"name": "pkg"}]})
    assert reg.is_monitored("pkg")
    assert reg.bad_versions("pkg") == set()


def test_duplicate_names_are_unioned():
    reg = load_registry({"packages": [
        {"name": "dup", "badVersions": ["1.0.0"]},
        {"name": "dup", "badVersions": ["2.0.0"]},
    ]})
    assert reg.index["dup"] == {"1.0.0", "2.0.0"}


def test_unmonitored_name_has_no_bad_versions(known_bad):
    assert not known_bad.is_monitored("clean-package")
    assert known_bad.bad_versions("clean-package") == set()


@pytest.mark.parametrize("data", [
    {},
    {"packages": None},
    {"packages": {"name": "pkg"}},
    {"packages": "pkg"},
    [],
    None,
])
def test_invalid_top_level_shape_raises(data):
    """A missing or non-array ``packages`` field is fatal."""
    with pytest.raises(ConfigurationError):
        load_registry(data)


@pytest.mark.parametrize("entry", [
    {"badVersions": ["1.0.0"]},
    {"name": "", "badVersions": []},
    {"name": "pkg", "badVersions": "1.0.0"},
    "pkg",
])
def test_invalid_entry_raises(entry):
    with pytest.raises(ConfigurationError):
        load_registry({"packages": [entry]})


def test_to_dict_round_trips_source_shape(known_bad):
    assert known_bad.to_dict() == KNOWN_BAD_DATA


def test_load_registry_file(tmp_path):
    path = write_json(tmp_path / "compromised.json", KNOWN_BAD_DATA)
    reg = load_registry_file(path)
    assert reg.source == str(path)
    assert reg.is_monitored("test-package-2")


def test_load_registry_file_missing(tmp_path):
    with pytest.raises(ConfigurationError) as excinfo:
        load_registry_file(tmp_path / "nope.json")
    assert excinfo.value.source == str(tmp_path / "nope.json")


def test_load_registry_file_invalid_json(tmp_path):
    path = tmp_path / "compromised.json"
    path.write_text("{ not json", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="not valid JSON"):
        load_registry_file(path)


def test_load_registry_file_wrong_shape(tmp_path):
    path = write_json(tmp_path / "compromised.json", {})
    with pytest.raises(ConfigurationError, match="packages"):
        load_registry_file(path)


def test_resolve_prefers_explicit_path(tmp_path, project):
    explicit = write_json(tmp_path / "custom.json", KNOWN_BAD_DATA)
    write_json(project / "compromised.json", KNOWN_BAD_DATA)
    assert resolve_registry_path(project, explicit) == explicit


def test_resolve_explicit_path_must_exist(tmp_path, project):
    with pytest.raises(ConfigurationError):
        resolve_registry_path(project, tmp_path / "missing.json")


def test_resolve_project_local_before_env(tmp_path, project, monkeypatch):
    local = write_json(project / "compromised.json", KNOWN_BAD_DATA)
    env_file = write_json(tmp_path / "env.json", KNOWN_BAD_DATA)
    monkeypatch.setenv("SUPPLYGUARD_REGISTRY", str(env_file))
    assert resolve_registry_path(project) == local


def test_resolve_env_before_bundled(tmp_path, project, monkeypatch):
    env_file = write_json(tmp_path / "env.json", KNOWN_BAD_DATA)
    monkeypatch.setenv("SUPPLYGUARD_REGISTRY", str(env_file))
    assert resolve_registry_path(project) == env_file


def test_resolve_env_pointing_nowhere_raises(tmp_path, project, monkeypatch):
    monkeypatch.setenv("SUPPLYGUARD_REGISTRY", str(tmp_path / "gone.json"))
    with pytest.raises(ConfigurationError):
        resolve_registry_path(project)


def test_resolve_falls_back_to_bundled(project):
    path = resolve_registry_path(project)
    assert path == registry_module.BUNDLED_REGISTRY
    assert len(load_registry_file(path)) > 0


def test_resolve_without_any_list_raises(project, tmp_path, monkeypatch):
    monkeypatch.setattr(registry_module, "BUNDLED_REGISTRY", tmp_path / "absent.json")
    with pytest.raises(ConfigurationError, match="not found"):
        resolve_registry_path(project)


def test_load_registry_file_deeply_nested(tmp_path):
    """A list too deep to decode is a configuration error, not a crash."""
    path = tmp_path / "compromised.json"
    path.write_text("[" * 200000 + "]" * 200000, encoding="utf-8")
    with pytest.raises(ConfigurationError, match="not valid JSON"):
        load_registry_file(path)


def test_json_scalars_use_json_spelling():
    reg = load_registry({"packages": [{"name": "odd", "badVersions": [1.0, True, None]}]})
    assert reg.index["odd"] == {"1", "true", "null"}
