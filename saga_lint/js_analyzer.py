"""
JS Analyzer — tree-sitter access layer for JavaScript / TypeScript sources.

Provides everything the rule needs from the syntax tree:
  • Grammar selection by file extension (JS, TS, TSX)
  • Parsing and exact source-text extraction
  • A depth-first walk with per-node-type enter / exit hooks
  • Import, call, yield and function node accessors

ESTree does not materialise parentheses, tree-sitter does.  The helpers
below look through ``parenthesized_expression`` wherever the rule's
node-shape assumptions would otherwise break.
"""

import os
import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

import tree_sitter_javascript as tsjs
import tree_sitter_typescript as tsts
from tree_sitter import Language, Node, Parser, Tree

logger = logging.getLogger(__name__)

JS_LANGUAGE = Language(tsjs.language())
TS_LANGUAGE = Language(tsts.language_typescript())
TSX_LANGUAGE = Language(tsts.language_tsx())

_LANGUAGES: Dict[str, Language] = {
    "javascript": JS_LANGUAGE,
    "typescript": TS_LANGUAGE,
    "tsx": TSX_LANGUAGE,
}

_EXTENSIONS: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

SUPPORTED_EXTENSIONS = frozenset(_EXTENSIONS)

_parsers: Dict[str, Parser] = {}

# Function-like node types; only generators move the generator depth
FUNCTION_TYPES = frozenset({
    "function_declaration",
    "function_expression",
    "function",                 # function expressions in older grammars
    "generator_function_declaration",
    "generator_function",
    "method_definition",
    "arrow_function",
})

_GENERATOR_TYPES = frozenset({"generator_function_declaration", "generator_function"})


class NodeKind(Enum):
    """The node shapes the call classifier distinguishes."""
    CALL = "call"
    CONDITIONAL = "conditional"
    OTHER = "other"


# ═══════════════════════════════════════════════════════════════════════
#  Parsing
# ═══════════════════════════════════════════════════════════════════════

def language_for_path(file_path: str) -> Optional[str]:
    """Map a file name to a grammar name, or None if unsupported."""
    ext = os.path.splitext(file_path)[1].lower()
    return _EXTENSIONS.get(ext)


def get_parser(language: str) -> Parser:
    if language not in _LANGUAGES:
        raise ValueError(f"Unsupported language: {language}")
    parser = _parsers.get(language)
    if parser is None:
        parser = Parser(_LANGUAGES[language])
        logger.debug("Created %s parser", language)
        _parsers[language] = parser
    return parser


def parse(source: bytes, language: str = "javascript") -> Tree:
    return get_parser(language).parse(source)


def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


# ═══════════════════════════════════════════════════════════════════════
#  Walk
# ═══════════════════════════════════════════════════════════════════════

Hook = Callable[[Node], None]


def walk(root: Node, enter_hooks: Dict[str, Hook], exit_hooks: Dict[str, Hook]) -> None:
    """Depth-first walk calling ``enter_hooks[type]`` before a node's children
    and ``exit_hooks[type]`` after them.

    Only named nodes are dispatched; punctuation and keyword tokens share
    type names with real nodes in some grammars (e.g. ``function``).
    """
    cursor = root.walk()
    visited = False
    while True:
        node = cursor.node
        if not visited:
            _dispatch(enter_hooks, node)
            if cursor.goto_first_child():
                continue
        _dispatch(exit_hooks, node)
        if cursor.goto_next_sibling():
            visited = False
            continue
        if cursor.goto_parent():
            visited = True
            continue
        break


def _dispatch(table: Dict[str, Hook], node: Node) -> None:
    if not node.is_named:
        return
    hook = table.get(node.type)
    if hook is not None:
        hook(node)


# ═══════════════════════════════════════════════════════════════════════
#  Node accessors
# ═══════════════════════════════════════════════════════════════════════

def _significant_children(node: Node) -> List[Node]:
    return [c for c in node.named_children if c.type != "comment"]


def unwrap_parens(node: Optional[Node]) -> Optional[Node]:
    """Strip any number of enclosing parentheses from an expression."""
    while node is not None and node.type == "parenthesized_expression":
        inner = _significant_children(node)
        node = inner[0] if inner else None
    return node


def effective_parent(node: Node) -> Optional[Node]:
    """The parent of ``node`` as ESTree would report it (parens skipped)."""
    parent = node.parent
    while parent is not None and parent.type == "parenthesized_expression":
        parent = parent.parent
    return parent


def node_kind(node: Optional[Node]) -> NodeKind:
    node = unwrap_parens(node)
    if node is None:
        return NodeKind.OTHER
    if node.type == "call_expression":
        return NodeKind.CALL
    if node.type == "ternary_expression":
        return NodeKind.CONDITIONAL
    return NodeKind.OTHER


def string_value(node: Node, source: bytes) -> str:
    """Value of a string literal node, without its quotes."""
    text = node_text(node, source)
    if len(text) >= 2 and text[0] in "'\"" and text[-1] == text[0]:
        return text[1:-1]
    return text


def import_source(node: Node, source: bytes) -> Optional[str]:
    """Module specifier of an ``import_statement``."""
    src = node.child_by_field_name("source")
    if src is None:
        return None
    return string_value(src, source)


def import_bindings(node: Node, source: bytes) -> List[Tuple[str, str, Optional[str]]]:
    """Local bindings introduced by an ``import_statement``.

    Returns ``(kind, local_name, imported_name)`` tuples where kind is
    ``"default"``, ``"namespace"`` or ``"named"``; imported_name is only
    set for named specifiers.
    """
    bindings = []
    clause = next((c for c in node.named_children if c.type == "import_clause"), None)
    if clause is None:
        return bindings

    for child in clause.named_children:
        if child.type == "identifier":
            bindings.append(("default", node_text(child, source), None))
        elif child.type == "namespace_import":
            ident = next((c for c in child.named_children if c.type == "identifier"), None)
            if ident is not None:
                bindings.append(("namespace", node_text(ident, source), None))
        elif child.type == "named_imports":
            for spec in child.named_children:
                if spec.type != "import_specifier":
                    continue
                name = spec.child_by_field_name("name")
                if name is None:
                    continue
                alias = spec.child_by_field_name("alias")
                imported = _binding_name(name, source)
                local = _binding_name(alias, source) if alias is not None else imported
                bindings.append(("named", local, imported))
    return bindings


def _binding_name(node: Node, source: bytes) -> str:
    # `import { "call" as c }` names the export with a string literal
    if node.type == "string":
        return string_value(node, source)
    return node_text(node, source)


def callee_key(call: Node, source: bytes) -> Optional[str]:
    """Lookup key for a call's callee.

    ``name`` for a plain identifier, ``object.property`` for a member
    access on an identifier, None for any other callee shape.
    """
    callee = unwrap_parens(call.child_by_field_name("function"))
    if callee is None:
        return None
    if callee.type == "identifier":
        return node_text(callee, source)
    if callee.type == "member_expression":
        obj = unwrap_parens(callee.child_by_field_name("object"))
        prop = callee.child_by_field_name("property")
        if obj is None or prop is None or obj.type != "identifier":
            return None
        return f"{node_text(obj, source)}.{node_text(prop, source)}"
    return None


def is_delegating_yield(node: Node) -> bool:
    """True for ``yield*``."""
    return any(c.type == "*" for c in node.children)


def yield_argument(node: Node) -> Optional[Node]:
    inner = _significant_children(node)
    return inner[-1] if inner else None


def is_generator_function(node: Node) -> bool:
    if node.type in _GENERATOR_TYPES:
        return True
    if node.type == "method_definition":
        return any(c.type == "*" for c in node.children)
    return False


def ternary_branches(node: Node) -> Tuple[Optional[Node], Optional[Node]]:
    return node.child_by_field_name("consequence"), node.child_by_field_name("alternative")
