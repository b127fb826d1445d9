"""
Alias Registry

Maps the names a document uses at call sites to canonical effect names.
Populated from import declarations in document order; a call is only
recognised once the import that binds its callee has been seen.
"""

from typing import Dict, FrozenSet, Iterable, Optional, Tuple


class AliasRegistry:
    """Lookup key → canonical effect name, for one document."""

    def __init__(self, effect_names: FrozenSet[str], tracked_sources: FrozenSet[str]):
        self.effect_names = effect_names
        self.tracked_sources = tracked_sources
        self._aliases: Dict[str, str] = {}

    def is_tracked_source(self, specifier: Optional[str]) -> bool:
        return specifier in self.tracked_sources

    def register_namespace(self, local_name: str) -> None:
        """``import E from ...``: every effect becomes reachable as ``E.<name>``."""
        for name in self.effect_names:
            self._aliases[f"{local_name}.{name}"] = name

    def register_named(self, local_name: str, imported_name: str) -> None:
        """``import { call as c } from ...``: ``c`` resolves to ``call``."""
        self._aliases[local_name] = imported_name

    def observe_import(self, specifier: Optional[str],
                       bindings: Iterable[Tuple[str, str, Optional[str]]]) -> int:
        """Register the bindings of one import declaration.

        Imports from untracked modules are ignored.  Returns the number of
        bindings registered.
        """
        if not self.is_tracked_source(specifier):
            return 0
        count = 0
        for kind, local, imported in bindings:
            if kind == "named":
                self.register_named(local, imported)
            else:
                self.register_namespace(local)
            count += 1
        return count

    def resolve(self, key: Optional[str]) -> Optional[str]:
        """Canonical effect name for a callee key, or None if unresolved."""
        if key is None:
            return None
        return self._aliases.get(key)

    def __len__(self) -> int:
        return len(self._aliases)
