"""
Saga Linter — runs the delegate-effects rule over files in a workspace.

Handles everything around the rule itself:
  • Path resolution (POSIX or Windows separators, relative or absolute)
  • Grammar selection by extension
  • Parse caching, with explicit invalidation after edits
  • Workspace file discovery

Guards:
  • Skips binary files (null-byte check)
  • Missing / unreadable / unsupported files yield no violations
"""

import os
import logging
from typing import Dict, List, Optional, Tuple

from tree_sitter import Tree

from saga_lint.delegate_effects import DelegateEffectsRule
from saga_lint.js_analyzer import SUPPORTED_EXTENSIONS, language_for_path, parse
from saga_lint.models import Violation

logger = logging.getLogger(__name__)

_SKIP_DIRS = {
    ".git", "node_modules", "dist", "build", "coverage",
    ".vscode", ".idea", "__pycache__", "venv",
}


def _norm_path(path: str) -> str:
    return path.replace("\\", "/")


class SagaLinter:
    def __init__(self, workspace_root: str, rule: Optional[DelegateEffectsRule] = None):
        self.workspace_root = workspace_root
        self.rule = rule or DelegateEffectsRule()
        self._cache: Dict[str, Tuple[bytes, Tree]] = {}

    # ────────────────────────────────────────────────────────────────
    #  Internal helpers
    # ────────────────────────────────────────────────────────────────

    def _resolve(self, file_path: str) -> str:
        """Resolve a (possibly POSIX-style) relative path to an absolute path."""
        native = file_path.replace("/", os.sep).replace("\\", os.sep)
        if os.path.isabs(native):
            return native
        return os.path.join(self.workspace_root, native)

    def _get_tree(self, file_path: str) -> Tuple[Optional[bytes], Optional[Tree]]:
        """Parse file and cache the result."""
        full = self._resolve(file_path)
        if full in self._cache:
            return self._cache[full]

        language = language_for_path(full)
        if language is None:
            logger.warning("Unsupported file type: %s", full)
            return None, None

        if not os.path.isfile(full):
            logger.warning("File not found: %s", full)
            return None, None

        try:
            with open(full, "rb") as f:
                source = f.read()
        except OSError as e:
            logger.error("Cannot read %s: %s", full, e)
            return None, None

        if b"\x00" in source[:8192]:
            logger.warning("Skipping binary file: %s", full)
            return None, None

        try:
            tree = parse(source, language)
        except Exception as e:
            logger.error("Failed to parse %s: %s", full, e)
            return None, None

        if tree.root_node.has_error:
            logger.info("Parse errors in %s; linting recovered tree", full)
        self._cache[full] = (source, tree)
        return source, tree

    def invalidate(self, file_path: str) -> None:
        """Drop the cached tree so the next lint re-reads the file."""
        self._cache.pop(self._resolve(file_path), None)

    # ────────────────────────────────────────────────────────────────
    #  Linting
    # ────────────────────────────────────────────────────────────────

    def lint_source(self, source: bytes, language: str = "javascript",
                    file_path: str = "") -> List[Violation]:
        """Lint an in-memory buffer."""
        tree = parse(source, language)
        return self.rule.check(tree.root_node, source, file_path)

    def lint_file(self, file_path: str) -> List[Violation]:
        source, tree = self._get_tree(file_path)
        if tree is None:
            return []
        return self.rule.check(tree.root_node, source, _norm_path(file_path))

    def lint_workspace(self) -> Dict[str, List[Violation]]:
        """Violations per workspace-relative path, for files that have any."""
        results = {}
        for rel in self.discover_files():
            violations = self.lint_file(rel)
            if violations:
                results[rel] = violations
        return results

    # ────────────────────────────────────────────────────────────────
    #  File discovery
    # ────────────────────────────────────────────────────────────────

    def discover_files(self) -> List[str]:
        """Find all JS/TS sources in the workspace."""
        files = []
        for root, dirs, filenames in os.walk(self.workspace_root):
            dirs[:] = [d for d in dirs if d not in _SKIP_DIRS]
            for fname in filenames:
                ext = os.path.splitext(fname)[1].lower()
                if ext in SUPPORTED_EXTENSIONS:
                    rel = _norm_path(os.path.relpath(os.path.join(root, fname), self.workspace_root))
                    files.append(rel)
        logger.info("Found %d source files under %s", len(files), self.workspace_root)
        return sorted(files)
