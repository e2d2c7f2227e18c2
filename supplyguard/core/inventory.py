"""
Package inventory for SupplyGuard - maps installed package names to the exact versions found.
"""

from typing import Any, Dict, Iterator, List, Set, Tuple

def version_string(value: Any) -> str:
    """Render a version value the way npm tooling would print it.

    JSON booleans and null keep their JSON spelling and integral floats drop
    the trailing ``.0``, so ``1.0`` and ``true`` read as ``"1"`` and ``"true"``.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)

class Inventory:
    """Package name -> set of version strings.

    Names keep first-insertion order so that findings come out in a stable
    order within one run. Contributions to an existing name are unioned.
    """

    def __init__(self):
        self._packages: Dict[str, Set[str]] = {}

    def add_version(self, name: str, version) -> None:
        """Record one (name, version) pair; the version is coerced to str."""
        self._packages.setdefault(name, set()).add(version_string(version))

    def versions(self, name: str) -> Set[str]:
        return self._packages.get(name, set())

    def names(self) -> List[str]:
        return list(self._packages)

    def copy(self) -> "Inventory":
        clone = Inventory()
        for name, versions in self._packages.items():
            clone._packages[name] = set(versions)
        return clone

    def merge(self, other: "Inventory") -> "Inventory":
        """Return a new inventory holding the key-wise union of both."""
        merged = self.copy()
        for name, versions in other:
            merged._packages.setdefault(name, set()).update(versions)
        return merged

    def to_dict(self) -> Dict[str, List[str]]:
        return {name: sorted(versions) for name, versions in self._packages.items()}

    def __iter__(self) -> Iterator[Tuple[str, Set[str]]]:
        return iter(self._packages.items())

    def __contains__(self, name) -> bool:
        return name in self._packages

    def __len__(self) -> int:
        return len(self._packages)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Inventory):
            return NotImplemented
        return self._packages == other._packages

    def __repr__(self) -> str:
        return f"Inventory({self.to_dict()!r})"

def merge_inventories(first: Inventory, second: Inventory) -> Inventory:
    """Union two inventories without mutating either."""
    return first.merge(second)
