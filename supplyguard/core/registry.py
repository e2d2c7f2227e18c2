"""
Known-bad registry for SupplyGuard - loads and indexes the list of compromised package versions.
"""

import json
import os
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Set
from dataclasses import dataclass, field

from pydantic import ValidationError

from ..api.models import KnownBadListModel

logger = logging.getLogger(__name__)

REGISTRY_FILENAME = "compromised.json"
REGISTRY_ENV_VAR = "SUPPLYGUARD_REGISTRY"
BUNDLED_REGISTRY = Path(__file__).resolve().parent.parent / "data" / REGISTRY_FILENAME

class ConfigurationError(Exception):
    """Raised when the known-bad data source is missing or structurally invalid."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self) -> str:
        if self.source:
            return f"{self.message} ({self.source})"
        return self.message

@dataclass
class KnownBadEntry:
    """Represents one monitored package and its compromised versions."""
    name: str
    bad_versions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "badVersions": list(self.bad_versions)}

class KnownBadRegistry:
    """Ordered known-bad entries plus a name -> bad version set index."""

    def __init__(self, entries: List[KnownBadEntry], source: Optional[str] = None):
        self.entries = list(entries)
        self.source = source
        self._index: Optional[Dict[str, Set[str]]] = None

    @property
    def index(self) -> Dict[str, Set[str]]:
        """Name -> set of bad versions, built on first access."""
        if self._index is None:
            index: Dict[str, Set[str]] = {}
            for entry in self.entries:
                index.setdefault(entry.name, set()).update(str(v) for v in entry.bad_versions)
            self._index = index
        return self._index

    def is_monitored(self, name: str) -> bool:
        return name in self.index

    def bad_versions(self, name: str) -> Set[str]:
        return self.index.get(name, set())

    def to_dict(self) -> Dict[str, Any]:
        return {"packages": [entry.to_dict() for entry in self.entries]}

    def __iter__(self) -> Iterator[KnownBadEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

def load_registry(data: Any, source: Optional[str] = None) -> KnownBadRegistry:
    """Validate already-parsed known-bad data and build a registry.

    The data must be an object whose ``packages`` field is an array of
    ``{name, badVersions}`` objects. ``badVersions`` may be omitted and may
    contain numbers, which are coerced to their string form.
    """
    if not isinstance(data, dict):
        raise ConfigurationError("Known-bad list must be a JSON object", source)
    if not isinstance(data.get("packages"), list):
        raise ConfigurationError("Known-bad list must contain a 'packages' array", source)

    try:
        parsed = KnownBadListModel.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Known-bad list is invalid: {e.error_count()} error(s), first: {_first_error(e)}", source) from e

    entries = [KnownBadEntry(name=p.name, bad_versions=list(p.badVersions)) for p in parsed.packages]
    logger.info(f"Loaded {len(entries)} known-bad package entries")
    return KnownBadRegistry(entries, source=source)

def load_registry_file(path) -> KnownBadRegistry:
    """Read, parse and validate a known-bad JSON file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError("Known-bad list not found", str(path)) from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Known-bad list could not be read: {e}", str(path)) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Known-bad list is not valid JSON: {e.msg} at line {e.lineno}", str(path)) from e
    except (ValueError, RecursionError) as e:
        raise ConfigurationError(f"Known-bad list is not valid JSON: {type(e).__name__}", str(path)) from e

    return load_registry(data, source=str(path))

def resolve_registry_path(project_root, explicit=None) -> Path:
    """Pick the known-bad list: explicit path, project-local file, environment, bundled default."""
    if explicit:
        explicit_path = Path(explicit)
        if not os.path.isfile(explicit_path):
            raise ConfigurationError("Known-bad list not found", str(explicit_path))
        return explicit_path

    local_path = Path(project_root) / REGISTRY_FILENAME
    if os.path.isfile(local_path):
        return local_path

    env_path = os.getenv(REGISTRY_ENV_VAR)
    if env_path:
        if not os.path.isfile(env_path):
            raise ConfigurationError(f"Known-bad list named by {REGISTRY_ENV_VAR} not found", env_path)
        return Path(env_path)

    if os.path.isfile(BUNDLED_REGISTRY):
        return BUNDLED_REGISTRY

    raise ConfigurationError(
        f"{REGISTRY_FILENAME} not found in project root or bundled with package. "
        f"Create one in your project root or set {REGISTRY_ENV_VAR}."
    )

def _first_error(error: ValidationError) -> str:
    details = error.errors()
    if not details:
        return str(error)
    first = details[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', 'invalid value')}"
