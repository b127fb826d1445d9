"""
Rule: delegate-effects

typed-redux-saga effects are generators and must be consumed with
``yield*`` so that their return types flow through.  A plain ``yield``
hands the effect object to redux-saga untyped.  The rule flags

  A. a non-delegating ``yield`` whose argument is a tracked effect call
     (directly, or through either branch of a ternary), and
  B. a tracked effect call that sits directly under a ``yield`` but is
     reached while the tracker is outside any yield yet inside a generator.

and attaches a textual fix to each report.  All mutable state lives in a
``_DocumentPass`` created per checked document.
"""

import logging
from typing import FrozenSet, List, Optional

from tree_sitter import Node

from saga_lint.alias_registry import AliasRegistry
from saga_lint.classifier import is_effect_call, resolve_effect
from saga_lint.effects import TRACKED_SOURCES, load_effect_names
from saga_lint.js_analyzer import (
    FUNCTION_TYPES,
    effective_parent,
    import_bindings,
    import_source,
    is_delegating_yield,
    is_generator_function,
    node_text,
    walk,
    yield_argument,
)
from saga_lint.models import Fix, Violation
from saga_lint.scope_tracker import TraversalState

logger = logging.getLogger(__name__)

RULE_ID = "delegate-effects"
MESSAGE = "You should use yield* for all typed-redux-saga effects"

_YIELD = "yield"
_DELEGATE = "yield*"


# ═══════════════════════════════════════════════════════════════════════
#  Violation shapes
# ═══════════════════════════════════════════════════════════════════════

def missing_delegate(node: Node, registry: AliasRegistry, source: bytes) -> bool:
    """``yield <effect call>`` without ``*``."""
    return not is_delegating_yield(node) and is_effect_call(yield_argument(node), registry, source)


def bare_effect_call(node: Node, registry: AliasRegistry, state: TraversalState,
                     source: bytes) -> bool:
    """Tracked call directly under a yield, visited with
    ``yield_depth == 0`` inside a generator."""
    parent = effective_parent(node)
    if parent is None or parent.type != "yield_expression":
        return False
    if resolve_effect(node, registry, source) is None:
        return False
    return not state.in_yield and state.in_generator


def delegation_fix(node: Node, source: bytes) -> Fix:
    """Rewrite the leading ``yield`` of the node's text to ``yield*``."""
    fixed = node_text(node, source).replace(_YIELD, _DELEGATE, 1)
    return Fix(kind="replace", start_byte=node.start_byte, end_byte=node.end_byte, text=fixed)


def insertion_fix(node: Node) -> Fix:
    """Prepend ``yield* `` to the node's text."""
    return Fix(kind="insert_before", start_byte=node.start_byte, end_byte=node.start_byte,
               text=f"{_DELEGATE} ")


# ═══════════════════════════════════════════════════════════════════════
#  Rule
# ═══════════════════════════════════════════════════════════════════════

class DelegateEffectsRule:
    """Stateless between documents; ``check`` builds fresh state per call."""

    rule_id = RULE_ID
    message = MESSAGE

    def __init__(self, effect_names: Optional[FrozenSet[str]] = None,
                 tracked_sources: Optional[FrozenSet[str]] = None):
        self.effect_names = effect_names if effect_names is not None else load_effect_names()
        self.tracked_sources = tracked_sources if tracked_sources is not None else TRACKED_SOURCES

    def check(self, root: Node, source: bytes, file_path: str = "") -> List[Violation]:
        doc = _DocumentPass(self, source, file_path)
        walk(root, doc.enter_hooks(), doc.exit_hooks())
        return doc.violations


class _DocumentPass:
    """Registry, traversal counters and reports for one document."""

    def __init__(self, rule: DelegateEffectsRule, source: bytes, file_path: str):
        self.rule = rule
        self.source = source
        self.file_path = file_path
        self.registry = AliasRegistry(rule.effect_names, rule.tracked_sources)
        self.state = TraversalState()
        self.violations: List[Violation] = []

    def enter_hooks(self):
        hooks = {
            "import_statement": self.on_import,
            "yield_expression": self.on_yield,
            "call_expression": self.on_call,
        }
        for fn_type in FUNCTION_TYPES:
            hooks[fn_type] = self.on_function
        return hooks

    def exit_hooks(self):
        hooks = {"yield_expression": self.on_yield_exit}
        for fn_type in FUNCTION_TYPES:
            hooks[fn_type] = self.on_function_exit
        return hooks

    # ── handlers ──

    def on_import(self, node: Node) -> None:
        self.registry.observe_import(import_source(node, self.source),
                                     import_bindings(node, self.source))

    def on_function(self, node: Node) -> None:
        self.state.enter_function(is_generator_function(node))

    def on_function_exit(self, node: Node) -> None:
        self.state.exit_function(is_generator_function(node))

    def on_yield(self, node: Node) -> None:
        self.state.enter_yield()
        if missing_delegate(node, self.registry, self.source):
            self.report(node, delegation_fix(node, self.source))

    def on_yield_exit(self, node: Node) -> None:
        self.state.exit_yield()

    def on_call(self, node: Node) -> None:
        if bare_effect_call(node, self.registry, self.state, self.source):
            self.report(node, insertion_fix(node))

    # ── reporting ──

    def report(self, node: Node, fix: Optional[Fix]) -> None:
        start_row, start_col = node.start_point
        end_row, end_col = node.end_point
        violation = Violation(
            rule_id=self.rule.rule_id,
            message=self.rule.message,
            file_path=self.file_path,
            line_number=start_row + 1,
            column=start_col + 1,
            end_line=end_row + 1,
            end_column=end_col + 1,
            node_type=node.type,
            snippet=node_text(node, self.source),
            fix=fix,
        )
        logger.debug("%s:%d:%d %s", self.file_path or "<source>",
                     violation.line_number, violation.column, violation.snippet)
        self.violations.append(violation)
