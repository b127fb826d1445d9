"""
Call Classifier

Decides whether an expression denotes a call to a tracked effect.  Only
call expressions and the two branches of a conditional are examined;
conditions and call arguments are never descended into.
"""

from typing import Optional

from tree_sitter import Node

from saga_lint.alias_registry import AliasRegistry
from saga_lint.js_analyzer import NodeKind, callee_key, node_kind, ternary_branches, unwrap_parens


def is_effect_call(node: Optional[Node], registry: AliasRegistry, source: bytes) -> bool:
    node = unwrap_parens(node)
    kind = node_kind(node)
    if kind is NodeKind.CALL:
        return registry.resolve(callee_key(node, source)) is not None
    if kind is NodeKind.CONDITIONAL:
        consequence, alternative = ternary_branches(node)
        return (is_effect_call(consequence, registry, source)
                or is_effect_call(alternative, registry, source))
    return False


def resolve_effect(node: Optional[Node], registry: AliasRegistry, source: bytes) -> Optional[str]:
    """Canonical effect name for a direct effect call, or None."""
    node = unwrap_parens(node)
    if node_kind(node) is not NodeKind.CALL:
        return None
    return registry.resolve(callee_key(node, source))
