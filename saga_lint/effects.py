"""
Effect Catalogue

The names exported by ``typed-redux-saga`` and the module specifiers under
which they can be imported.  Both are process-wide constants: the rule
receives them at construction time and never mutates them.
"""

from functools import lru_cache
from typing import FrozenSet

# Module specifiers whose imports are tracked
TRACKED_SOURCES: FrozenSet[str] = frozenset({
    "typed-redux-saga",
    "typed-redux-saga/macro",
})

# Export names of typed-redux-saga, in export order
_EFFECT_EXPORTS = (
    "take", "takeMaybe", "takeEvery", "takeLatest", "takeLeading",
    "put", "putResolve",
    "call", "apply", "cps",
    "fork", "spawn", "join", "cancel",
    "select", "actionChannel", "cancelled", "flush",
    "getContext", "setContext",
    "throttle", "debounce", "retry", "delay",
    "all", "race",
)


@lru_cache(maxsize=None)
def load_effect_names() -> FrozenSet[str]:
    """Return the set of tracked effect names (loaded once per process)."""
    return frozenset(_EFFECT_EXPORTS)


def effect_names_in_order():
    """Effect names in the order the effects module exports them."""
    return list(_EFFECT_EXPORTS)
