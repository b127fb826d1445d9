import os
import logging
from dataclasses import dataclass
from typing import Dict, List, Tuple

from saga_lint.js_analyzer import language_for_path, parse

logger = logging.getLogger(__name__)

# Upper bound on lint → fix rounds for one buffer
MAX_PASSES = 10


@dataclass
class FixOutcome:
    file_path: str
    applied: int = 0
    skipped: int = 0
    passes: int = 0
    written: bool = False
    rolled_back: bool = False
    message: str = ""


class BatchFixer:
    """
    Applies multiple text edits to source buffers and files safely.
    Handles offset shifts by applying edits in reverse order (bottom-up),
    and refuses to write a result that no longer parses.
    """

    def apply_edits(self, content: bytes, edits: List[Dict]) -> Tuple[bytes, int, int]:
        """Apply ``{start_byte, end_byte, text}`` edits to ``content``.

        Returns (new_content, applied, skipped).  Out-of-bounds edits and
        edits overlapping one already applied are skipped.
        """
        sorted_edits = sorted(edits, key=lambda e: (e["start_byte"], e["end_byte"]), reverse=True)

        new_content = bytearray(content)
        applied = 0
        skipped = 0
        last_start = float("inf")

        for edit in sorted_edits:
            start = edit["start_byte"]
            end = edit["end_byte"]
            text = edit["text"].encode("utf-8")

            if start < 0 or end > len(content) or start > end:
                logger.warning("Edit out of bounds at offset %d-%d. Skipping.", start, end)
                skipped += 1
                continue

            # Working backwards, this edit must end before the previous one starts
            # and may not share its anchor
            if end > last_start or start == last_start:
                logger.warning("Overlap detected at offset %d-%d. Skipping edit.", start, end)
                skipped += 1
                continue

            new_content[start:end] = text
            last_start = start
            applied += 1

        return bytes(new_content), applied, skipped

    def fix_source(self, linter, source: bytes, language: str = "javascript") -> Tuple[bytes, int, int]:
        """Lint and fix ``source`` until no fixable violation remains.

        Returns (fixed_source, total_applied, passes).
        """
        total = 0
        passes = 0
        while passes < MAX_PASSES:
            edits = [v.fix.to_edit() for v in linter.lint_source(source, language) if v.fix]
            if not edits:
                break
            fixed, applied, _ = self.apply_edits(source, edits)
            passes += 1
            if applied == 0:
                break
            if parse(fixed, language).root_node.has_error and not parse(source, language).root_node.has_error:
                logger.warning("Fix pass %d produced parse errors; keeping previous output", passes)
                break
            source = fixed
            total += applied
        return source, total, passes

    def fix_file(self, linter, file_path: str, dry_run: bool = False) -> FixOutcome:
        """Run :meth:`fix_source` over a workspace file and write the result."""
        full = linter._resolve(file_path)
        outcome = FixOutcome(file_path=file_path)
        language = language_for_path(full)
        if language is None:
            outcome.message = f"Unsupported file type: {file_path}"
            return outcome
        if not os.path.exists(full):
            outcome.message = f"File not found: {file_path}"
            return outcome

        with open(full, "rb") as f:
            original = f.read()

        fixed, applied, passes = self.fix_source(linter, original, language)
        outcome.applied = applied
        outcome.passes = passes

        if applied == 0:
            outcome.message = f"Nothing to fix in {file_path}"
        elif dry_run:
            outcome.message = f"[Dry Run] Would apply {applied} fixes to {file_path}"
        else:
            with open(full, "wb") as f:
                f.write(fixed)
            linter.invalidate(file_path)
            outcome.written = True
            outcome.message = f"Applied {applied} fixes to {file_path} in {passes} pass(es)"
            logger.info(outcome.message)
        return outcome

    def apply_to_file(self, file_path: str, edits: List[Dict], dry_run: bool = False) -> FixOutcome:
        """Apply a fixed set of edits to one file.

        After applying, the result is re-parsed; if it introduces parse
        errors the original content is kept and the outcome is marked
        ``rolled_back``.
        """
        outcome = FixOutcome(file_path=file_path)
        if not os.path.exists(file_path):
            raise FileNotFoundError(f"File not found: {file_path}")

        with open(file_path, "rb") as f:
            original = f.read()

        new_content, outcome.applied, outcome.skipped = self.apply_edits(original, edits)
        if outcome.applied == 0:
            outcome.message = "All edits were skipped (out of bounds or overlapping)."
            return outcome

        language = language_for_path(file_path) or "javascript"
        if parse(new_content, language).root_node.has_error and \
                not parse(original, language).root_node.has_error:
            outcome.rolled_back = True
            outcome.message = "Fix produced unparsable source. Left the file unchanged."
            logger.warning("Rolled back fixes for %s: parse errors after edit", file_path)
            return outcome

        if dry_run:
            outcome.message = f"[Dry Run] Would apply {outcome.applied} fixes to {file_path}"
            return outcome

        with open(file_path, "wb") as f:
            f.write(new_content)
        outcome.written = True
        outcome.message = f"Applied {outcome.applied} fixes to {file_path}"
        logger.info(outcome.message)
        return outcome
