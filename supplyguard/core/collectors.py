"""
Inventory collectors for SupplyGuard - read package-lock.json and walk node_modules.
"""

import json
import os
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional, Tuple
from dataclasses import dataclass

from .inventory import Inventory

logger = logging.getLogger(__name__)

LOCKFILE_NAME = "package-lock.json"
INSTALL_DIR_NAME = "node_modules"
MANIFEST_NAME = "package.json"
DEFAULT_MAX_DEPTH = 6

# Receives (path, reason) for every read that was skipped
Diagnostics = Callable[[str, str], None]

@dataclass(frozen=True)
class ReadResult:
    """Outcome of reading one JSON file."""
    path: str
    data: Any = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None

def read_json_safe(path) -> ReadResult:
    """Read a JSON file, converting every failure into a result with a reason."""
    path = str(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return ReadResult(path=path, data=json.load(f))
    except FileNotFoundError:
        return ReadResult(path=path, reason="missing")
    except json.JSONDecodeError as e:
        return ReadResult(path=path, reason=f"invalid JSON: {e.msg} at line {e.lineno}")
    except UnicodeDecodeError as e:
        return ReadResult(path=path, reason=f"undecodable: {e.reason}")
    except (ValueError, RecursionError) as e:
        # Pathologically nested documents exhaust the decoder's stack
        return ReadResult(path=path, reason=f"invalid JSON: {type(e).__name__}")
    except OSError as e:
        return ReadResult(path=path, reason=f"unreadable: {e.strerror or e}")

def _report(diagnostics: Optional[Diagnostics], path, reason: str) -> None:
    logger.debug(f"Skipping {path}: {reason}")
    if diagnostics:
        diagnostics(str(path), reason)

def _lock_key_to_name(key: str) -> Optional[str]:
    """Strip the install-root prefix from a lockfile ``packages`` key.

    ``node_modules/a/node_modules/@s/b`` resolves to ``@s/b``. Keys outside
    node_modules (the root project, workspace links) have no package name.
    """
    segments = key.split("/")
    if INSTALL_DIR_NAME not in segments:
        return None
    last = len(segments) - 1 - segments[::-1].index(INSTALL_DIR_NAME)
    name = "/".join(segments[last + 1:])
    return name or None

def collect_from_lockfile(project_root, diagnostics: Optional[Diagnostics] = None) -> Inventory:
    """Build an inventory from package-lock.json.

    Both the flat ``packages`` map (lockfile v2/v3) and the nested
    ``dependencies`` tree (lockfile v1) are read into the same inventory.
    An absent or corrupt lockfile yields an empty inventory.
    """
    inventory = Inventory()
    lock_path = Path(project_root) / LOCKFILE_NAME
    if not os.path.isfile(lock_path):
        logger.debug(f"No lockfile at {lock_path}")
        return inventory

    result = read_json_safe(lock_path)
    if not result.ok:
        _report(diagnostics, lock_path, result.reason)
        return inventory
    lock = result.data
    if not isinstance(lock, dict):
        _report(diagnostics, lock_path, "lockfile is not a JSON object")
        return inventory

    packages = lock.get("packages")
    if isinstance(packages, dict):
        for key, meta in packages.items():
            if not isinstance(meta, dict) or not meta.get("version"):
                continue
            name = _lock_key_to_name(key)
            if name:
                inventory.add_version(name, meta["version"])

    dependencies = lock.get("dependencies")
    stack: List[Any] = [dependencies]
    while stack:
        node = stack.pop()
        if not isinstance(node, dict):
            continue
        for name, meta in node.items():
            if not isinstance(meta, dict):
                continue
            if meta.get("version"):
                inventory.add_version(name, meta["version"])
            if meta.get("dependencies"):
                stack.append(meta["dependencies"])

    logger.info(f"Lockfile {lock_path} lists {len(inventory)} packages")
    return inventory

def _list_directories(directory: Path, diagnostics: Optional[Diagnostics]) -> List[Tuple[str, Path]]:
    """Sorted visible subdirectories of ``directory``.

    A directory read that fails part way keeps what was listed so far. An
    entry that cannot be stat'ed (symlink loop, permission denied) is
    skipped on its own without hiding its siblings.
    """
    entries = []
    try:
        with os.scandir(directory) as it:
            for entry in it:
                if entry.name.startswith("."):
                    continue
                try:
                    is_dir = entry.is_dir()
                except OSError as e:
                    _report(diagnostics, entry.path, f"unreadable entry: {e.strerror or e}")
                    continue
                if is_dir:
                    entries.append((entry.name, Path(entry.path)))
    except OSError as e:
        _report(diagnostics, directory, f"unreadable directory: {e.strerror or e}")
    # scandir order is filesystem dependent
    return sorted(entries)

def _process_package(package_dir: Path, expected_name: str, inventory: Inventory,
                     diagnostics: Optional[Diagnostics]) -> None:
    manifest_path = package_dir / MANIFEST_NAME
    result = read_json_safe(manifest_path)
    if not result.ok:
        _report(diagnostics, manifest_path, result.reason)
        return
    manifest = result.data
    if not isinstance(manifest, dict):
        _report(diagnostics, manifest_path, "manifest is not a JSON object")
        return

    name = manifest.get("name")
    version = manifest.get("version")
    if not name or not isinstance(name, str) or not version:
        _report(diagnostics, manifest_path, "manifest has no name or version")
        return
    if name != expected_name:
        # Aliased or moved packages; the declared name wins
        _report(diagnostics, manifest_path, f"declared name {name!r} differs from directory {expected_name!r}")
    inventory.add_version(name, version)

def collect_from_node_modules(project_root, max_depth: int = DEFAULT_MAX_DEPTH,
                              diagnostics: Optional[Diagnostics] = None) -> Inventory:
    """Build an inventory by walking the installed node_modules tree.

    The top-level node_modules is depth 0; each nested ``<pkg>/node_modules``
    is one level deeper, and levels beyond ``max_depth`` are not read.
    """
    inventory = Inventory()
    root = Path(project_root) / INSTALL_DIR_NAME
    if not os.path.isdir(root):
        logger.debug(f"No {INSTALL_DIR_NAME} directory at {root}")
        return inventory

    stack: List[Tuple[Path, int]] = [(root, 0)]
    visited = 0
    while stack:
        directory, depth = stack.pop()
        if depth > max_depth:
            logger.debug(f"Depth limit reached at {directory}")
            continue
        visited += 1

        package_dirs: List[Tuple[str, Path]] = []
        for name, path in _list_directories(directory, diagnostics):
            if name.startswith("@"):
                for child_name, child_path in _list_directories(path, diagnostics):
                    package_dirs.append((f"{name}/{child_name}", child_path))
            else:
                package_dirs.append((name, path))

        nested_dirs: List[Path] = []
        for expected_name, package_dir in package_dirs:
            _process_package(package_dir, expected_name, inventory, diagnostics)
            nested = package_dir / INSTALL_DIR_NAME
            if os.path.isdir(nested):
                nested_dirs.append(nested)

        # Reversed so nested trees are walked in directory order
        for nested in reversed(nested_dirs):
            stack.append((nested, depth + 1))

    logger.info(f"Walked {visited} {INSTALL_DIR_NAME} directories, found {len(inventory)} packages")
    return inventory
