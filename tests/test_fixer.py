"""
Fix application tests — BatchFixer.

Validates that:
  1. Edits are applied bottom-up with overlap / bounds protection
  2. fix_source reaches a fixed point (re-linting yields nothing)
  3. File fixes are written, dry runs are not, unparsable results roll back
"""

import os
import shutil
import sys
import tempfile
import unittest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

MOCK_PROJECT = os.path.join(PROJECT_ROOT, "tests", "mock_project")

from saga_lint.batch_fixer import BatchFixer, MAX_PASSES
from saga_lint.linter import SagaLinter


def edit(start, end, text):
    return {"start_byte": start, "end_byte": end, "text": text}


class TestApplyEdits(unittest.TestCase):

    def setUp(self):
        self.fixer = BatchFixer()

    def test_multiple_edits_keep_offsets(self):
        content = b"yield a; yield b;"
        new, applied, skipped = self.fixer.apply_edits(
            content, [edit(0, 5, "yield*"), edit(9, 14, "yield*")]
        )
        self.assertEqual(new, b"yield* a; yield* b;")
        self.assertEqual((applied, skipped), (2, 0))

    def test_insertion(self):
        new, applied, _ = self.fixer.apply_edits(b"x = call(a);", [edit(4, 4, "yield* ")])
        self.assertEqual(new, b"x = yield* call(a);")
        self.assertEqual(applied, 1)

    def test_overlap_skipped(self):
        content = b"yield call(fn, yield put(x))"
        outer = edit(0, len(content), "OUTER")
        inner = edit(15, 27, "yield* put(x)")
        new, applied, skipped = self.fixer.apply_edits(content, [outer, inner])
        self.assertEqual((applied, skipped), (1, 1))
        self.assertEqual(new, b"yield call(fn, yield* put(x))")

    def test_out_of_bounds_skipped(self):
        new, applied, skipped = self.fixer.apply_edits(b"abc", [edit(2, 10, "x"), edit(-1, 1, "y")])
        self.assertEqual(new, b"abc")
        self.assertEqual((applied, skipped), (0, 2))

    def test_unicode_text(self):
        content = "const s = 'é'; yield a;".encode("utf-8")
        start = content.index(b"yield")
        new, _, _ = self.fixer.apply_edits(content, [edit(start, start + 5, "yield*")])
        self.assertEqual(new.decode("utf-8"), "const s = 'é'; yield* a;")


class TestFixSource(unittest.TestCase):

    def setUp(self):
        self.fixer = BatchFixer()
        self.linter = SagaLinter(MOCK_PROJECT)

    def test_user_saga_fixed_point(self):
        with open(os.path.join(MOCK_PROJECT, "src", "sagas", "user.js"), "rb") as f:
            source = f.read()
        fixed, applied, passes = self.fixer.fix_source(self.linter, source)
        self.assertEqual(applied, 4)
        self.assertEqual(passes, 1)
        self.assertEqual(self.linter.lint_source(fixed), [])
        text = fixed.decode("utf-8")
        self.assertIn("const user = yield* call(api.fetchUser, action.id);", text)
        self.assertIn("yield* (user ? call(track, user) : E.put(reset()));", text)
        self.assertIn("yield helper(state);", text)

    def test_clean_source_untouched(self):
        source = b"import { call } from 'typed-redux-saga';\nfunction* s() { yield* call(f); }\n"
        fixed, applied, passes = self.fixer.fix_source(self.linter, source)
        self.assertEqual(fixed, source)
        self.assertEqual((applied, passes), (0, 0))

    def test_nested_needs_two_passes(self):
        source = (b"import { call, put } from 'typed-redux-saga';\n"
                  b"function* s() { yield call(fn, yield put(x)); }\n")
        fixed, applied, passes = self.fixer.fix_source(self.linter, source)
        self.assertEqual((applied, passes), (2, 2))
        self.assertLessEqual(passes, MAX_PASSES)
        self.assertIn(b"yield* call(fn, yield* put(x))", fixed)


class TestFileFixes(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.workspace = os.path.join(self.tmp, "ws")
        shutil.copytree(MOCK_PROJECT, self.workspace)
        self.linter = SagaLinter(self.workspace)
        self.fixer = BatchFixer()

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _read(self, rel):
        with open(os.path.join(self.workspace, rel), "rb") as f:
            return f.read()

    def test_fix_file_writes_and_invalidates(self):
        self.assertEqual(len(self.linter.lint_file("src/sagas/user.js")), 4)
        outcome = self.fixer.fix_file(self.linter, "src/sagas/user.js")
        self.assertTrue(outcome.written)
        self.assertEqual(outcome.applied, 4)
        self.assertEqual(self.linter.lint_file("src/sagas/user.js"), [])

    def test_fix_file_typescript(self):
        outcome = self.fixer.fix_file(self.linter, "src/sagas/typed.ts")
        self.assertEqual(outcome.applied, 2)
        self.assertIn(b"yield* call<number>(compute, 1)", self._read("src/sagas/typed.ts"))

    def test_dry_run_does_not_write(self):
        before = self._read("src/sagas/user.js")
        outcome = self.fixer.fix_file(self.linter, "src/sagas/user.js", dry_run=True)
        self.assertFalse(outcome.written)
        self.assertEqual(outcome.applied, 4)
        self.assertEqual(self._read("src/sagas/user.js"), before)

    def test_fix_file_missing(self):
        outcome = self.fixer.fix_file(self.linter, "src/sagas/missing.js")
        self.assertFalse(outcome.written)
        self.assertIn("not found", outcome.message)

    def test_apply_to_file(self):
        path = os.path.join(self.workspace, "src", "sagas", "user.js")
        edits = [v.fix.to_edit() for v in self.linter.lint_file("src/sagas/user.js")]
        outcome = self.fixer.apply_to_file(path, edits)
        self.assertTrue(outcome.written)
        self.assertEqual(outcome.applied, 4)

    def test_rollback_on_parse_error(self):
        path = os.path.join(self.workspace, "src", "sagas", "clean.js")
        before = self._read("src/sagas/clean.js")
        last_brace = before.rindex(b"}")
        outcome = self.fixer.apply_to_file(path, [edit(last_brace, last_brace + 1, "")])
        self.assertTrue(outcome.rolled_back)
        self.assertFalse(outcome.written)
        self.assertEqual(self._read("src/sagas/clean.js"), before)

    def test_apply_to_missing_file_raises(self):
        with self.assertRaises(FileNotFoundError):
            self.fixer.apply_to_file(os.path.join(self.workspace, "nope.js"), [edit(0, 0, "x")])


if __name__ == "__main__":
    unittest.main()
