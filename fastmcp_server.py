"""
typed-redux-saga Delegate Lint — MCP Server

Exposes tools to coding assistants via the Model Context Protocol:

  1. load_workspace   — point the linter at a JS/TS workspace
  2. list_violations  — lint one file, list every missing `yield*` (with fix status)
  3. lint_workspace   — lint every source file, summary per file
  4. explain_rule     — rule explanation with examples
  5. propose_fix      — show the auto-fix for a violation without applying it
  6. apply_fix        — apply the auto-fix for a violation + mark status
  7. verify_fix       — re-lint to confirm a violation is gone
  8. fix_all          — fix every violation in a file until stable
  9. list_effects     — tracked effect names and import sources
"""

from mcp.server.fastmcp import FastMCP
import logging
import os
import sys

# Ensure saga_lint is importable when launched as a script
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from saga_lint.batch_fixer import BatchFixer
from saga_lint.effects import TRACKED_SOURCES, effect_names_in_order
from saga_lint.linter import SagaLinter
from saga_lint.rule_docs import format_rule_explanation

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════
#  Server Setup
# ═══════════════════════════════════════════════════════════════════════

mcp = FastMCP("typed-redux-saga Delegate Lint")

linter = None
fixer = None

# ── Violation status tracking ──
# Key:   (normalized_file_path, line_number, rule_id)
# Value: "pending" | "fixed" | "verified" | "failed"
_violation_status = {}


def _vkey(file_path: str, line: int, rule_id: str) -> tuple:
    """Canonical key for the violation status map."""
    return (file_path.replace("\\", "/"), line, rule_id)


def _get_status(file_path: str, line: int, rule_id: str) -> str:
    return _violation_status.get(_vkey(file_path, line, rule_id), "pending")


def _set_status(file_path: str, line: int, rule_id: str, status: str):
    _violation_status[_vkey(file_path, line, rule_id)] = status


_STATUS_BADGE = {
    "pending": "",
    "fixed": " [FIXED]",
    "verified": " [VERIFIED]",
    "failed": " [FIX FAILED]",
}


def _find_violations(file_path: str, line_number: int):
    """Violations reported on ``line_number``, with closest-line fallback.

    Returns (violations, note, error).  ``error`` is set when nothing
    usable was found; ``note`` explains a fallback to another line.
    """
    violations = linter.lint_file(file_path)
    if not violations:
        return [], None, f"No violations found in `{file_path}`."

    exact = [v for v in violations if v.line_number == line_number]
    if exact:
        return exact, None, None

    closest = min(violations, key=lambda v: abs(v.line_number - line_number))
    lines_str = ", ".join(str(ln) for ln in sorted({v.line_number for v in violations})[:10])
    note = (
        f"No violation at line {line_number} in `{file_path}`, "
        f"but found {len(violations)} violation(s) at line(s): {lines_str}.\n"
        f"**Closest match:** line {closest.line_number} — using that instead."
    )
    return [v for v in violations if v.line_number == closest.line_number], note, None


# ═══════════════════════════════════════════════════════════════════════
#  Tool 1 — Load Workspace
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def load_workspace(workspace_root: str) -> str:
    """
    Initialises the linter for a JavaScript / TypeScript workspace.

    Args:
        workspace_root: Root directory of the workspace containing source code.
    """
    global linter, fixer, _violation_status

    if not os.path.isdir(workspace_root):
        return f"Error: Workspace root not found at {workspace_root}"

    _violation_status = {}  # reset on new workspace
    linter = SagaLinter(workspace_root)
    fixer = BatchFixer()

    files = linter.discover_files()
    by_ext = {}
    for f in files:
        ext = os.path.splitext(f)[1].lower()
        by_ext[ext] = by_ext.get(ext, 0) + 1
    breakdown = ", ".join(f"{n} {ext}" for ext, n in sorted(by_ext.items())) or "none"
    return (
        f"Workspace loaded: `{workspace_root}`.\n"
        f"Source files found: {len(files)} ({breakdown})."
    )


# ═══════════════════════════════════════════════════════════════════════
#  Tool 2 — List Violations
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def list_violations(file_path: str) -> str:
    """
    Lints a file and lists every effect yielded without `yield*`.

    Args:
        file_path: Relative path of the file in the workspace.
    """
    if linter is None:
        return "Error: No workspace loaded. Call load_workspace first."

    violations = linter.lint_file(file_path)
    if not violations:
        return f"No violations found for {file_path}"

    result = f"**{len(violations)} violations in {file_path}**:\n\n"
    for v in violations:
        badge = _STATUS_BADGE.get(_get_status(v.file_path, v.line_number, v.rule_id), "")
        fix = " (auto-fix available)" if v.fixable else ""
        result += (
            f"- **[{v.rule_id}]** Line {v.line_number}:{v.column} ({v.severity}){badge}{fix}: "
            f"{v.message}\n"
            f"  `{v.snippet.splitlines()[0] if v.snippet else ''}`\n"
        )
    return result


# ═══════════════════════════════════════════════════════════════════════
#  Tool 3 — Lint Workspace
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def lint_workspace() -> str:
    """
    Lints every JS/TS source in the workspace and summarises the results.
    """
    if linter is None:
        return "Error: No workspace loaded. Call load_workspace first."

    results = linter.lint_workspace()
    if not results:
        return "No violations found in the workspace."

    total = sum(len(v) for v in results.values())
    report = f"# Workspace Lint\n\n**{total} violations in {len(results)} file(s)**\n\n"
    report += "| File | Violations | Lines |\n"
    report += "|------|------------|-------|\n"
    for path in sorted(results):
        lines = sorted({v.line_number for v in results[path]})
        lines_str = ", ".join(str(ln) for ln in lines[:10])
        if len(lines) > 10:
            lines_str += f" ... ({len(lines)} total)"
        report += f"| `{path}` | {len(results[path])} | {lines_str} |\n"
    return report


# ═══════════════════════════════════════════════════════════════════════
#  Tool 4 — Explain Rule
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def explain_rule(rule_id: str = "delegate-effects") -> str:
    """
    Returns the rule's rationale, examples and fix strategy.

    Args:
        rule_id: Rule name, with or without the `typed-redux-saga/` prefix.
    """
    return format_rule_explanation(rule_id)


# ═══════════════════════════════════════════════════════════════════════
#  Tool 5 — Propose Fix
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def propose_fix(file_path: str, line_number: int) -> str:
    """
    Shows the auto-fix for the violation(s) on a line without applying it.

    Args:
        file_path:   The file path.
        line_number: The line number of the violation.
    """
    if linter is None:
        return "Error: No workspace loaded. Call load_workspace first."

    targets, note, error = _find_violations(file_path, line_number)
    if error:
        return error

    result = f"> **Note:** {note}\n\n" if note else ""
    for v in targets:
        result += f"### Line {v.line_number}:{v.column} — `{v.node_type}`\n"
        result += f"```js\n{v.snippet}\n```\n"
        if v.fix is None:
            result += "No auto-fix available.\n\n"
            continue
        if v.fix.kind == "replace":
            after = v.fix.text
        else:
            after = v.fix.text + v.snippet
        result += f"**Fixed ({v.fix.kind})**:\n```js\n{after}\n```\n\n"
    return result


# ═══════════════════════════════════════════════════════════════════════
#  Tool 6 — Apply Fix
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def apply_fix(file_path: str, line_number: int) -> str:
    """
    Applies the auto-fix for the violation(s) on a line.

    After applying edits the file is re-parsed; a result with new parse
    errors is not written.

    Args:
        file_path:   The file path.
        line_number: The line number of the violation.
    """
    if linter is None or fixer is None:
        return "Error: Not initialised. Call load_workspace first."

    targets, note, error = _find_violations(file_path, line_number)
    if error:
        return error

    edits = [v.fix.to_edit() for v in targets if v.fix]
    if not edits:
        return "Auto-fix not available for this violation."

    try:
        outcome = fixer.apply_to_file(linter._resolve(file_path), edits)
    except OSError as e:
        return f"Error applying fix: {e}"

    if not outcome.written:
        return f"Error: {outcome.message}"

    linter.invalidate(file_path)
    for v in targets:
        _set_status(v.file_path, v.line_number, v.rule_id, "fixed")

    result = f"Successfully applied {outcome.applied} edit(s) to `{file_path}`."
    if note:
        result = f"> **Note:** {note}\n\n{result}"
    if outcome.skipped:
        result += f" ({outcome.skipped} edit(s) skipped due to overlap/bounds.)"
    result += (
        "\n\n**Status:** marked as `fixed`. "
        "Run `verify_fix` to confirm the violation is resolved."
    )
    return result


# ═══════════════════════════════════════════════════════════════════════
#  Tool 7 — Verify Fix
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def verify_fix(file_path: str, line_number: int) -> str:
    """
    Re-lints the (possibly modified) file and checks whether any violation
    remains on the line.

    Args:
        file_path:   The file path.
        line_number: The line number of the original violation.
    """
    if linter is None:
        return "Error: Not initialised. Call load_workspace first."

    linter.invalidate(file_path)
    remaining = [v for v in linter.lint_file(file_path) if v.line_number == line_number]
    norm = file_path.replace("\\", "/")

    if not remaining:
        for key in [k for k in _violation_status if k[0] == norm and k[1] == line_number]:
            _violation_status[key] = "verified"
        return f"**VERIFIED** — `{norm}:{line_number}` no longer yields an effect without `yield*`."

    for v in remaining:
        _set_status(v.file_path, v.line_number, v.rule_id, "failed")
    snippets = "\n".join(f"- `{v.snippet}`" for v in remaining)
    return (
        f"**STILL PRESENT** — `{norm}:{line_number}` still has "
        f"{len(remaining)} violation(s):\n{snippets}\n\n"
        f"Consider running `apply_fix` again or fixing it manually."
    )


# ═══════════════════════════════════════════════════════════════════════
#  Tool 8 — Fix All
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def fix_all(file_path: str, dry_run: bool = False) -> str:
    """
    Applies every available fix in a file, re-linting between passes
    until no fixable violation remains, then verifies the result.

    Args:
        file_path: The file to process.
        dry_run:   If True, report what would change but do not write.
    """
    if linter is None or fixer is None:
        return "Error: Not initialised. Call load_workspace first."

    before = linter.lint_file(file_path)
    if not before:
        return f"No violations found for `{file_path}`."

    try:
        outcome = fixer.fix_file(linter, file_path, dry_run=dry_run)
    except OSError as e:
        return f"Error applying fixes: {e}"

    after = [] if dry_run else linter.lint_file(file_path)
    remaining_lines = {v.line_number for v in after}
    if not dry_run:
        for v in before:
            status = "failed" if v.line_number in remaining_lines else "verified"
            _set_status(v.file_path, v.line_number, v.rule_id, status)

    summary = f"## Fix All — `{file_path}`\n\n"
    summary += "| Metric | Count |\n|--------|-------|\n"
    summary += f"| Violations before | {len(before)} |\n"
    if dry_run:
        summary += f"| Would fix | {outcome.applied} |\n"
    else:
        summary += f"| Edits applied | {outcome.applied} |\n"
        summary += f"| Passes | {outcome.passes} |\n"
        summary += f"| Violations remaining | {len(after)} |\n"
    summary += f"\n{outcome.message}\n"
    return summary


# ═══════════════════════════════════════════════════════════════════════
#  Tool 9 — List Effects
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def list_effects() -> str:
    """
    Returns the effect names and import sources the rule tracks.
    """
    names = effect_names_in_order()
    report = "# Tracked Effects\n\n"
    report += "**Import sources**: " + ", ".join(f"`{s}`" for s in sorted(TRACKED_SOURCES)) + "\n\n"
    report += f"**Effects ({len(names)})**: " + ", ".join(f"`{n}`" for n in names) + "\n"
    return report


if __name__ == "__main__":
    # stdout carries the MCP stdio transport
    logging.basicConfig(stream=sys.stderr, level=logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s %(message)s")
    try:
        if hasattr(mcp, "_tool_manager") and hasattr(mcp._tool_manager, "_tools"):
            tools = list(mcp._tool_manager._tools.keys())
            logger.info("Delegate lint server starting with %d tools: %s", len(tools), tools)
    except Exception as e:
        logger.debug("Cannot inspect tools: %s", e)

    mcp.run()
