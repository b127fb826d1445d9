"""
Hardening tests:
  1. Linter handles missing, binary, unsupported and broken files gracefully
  2. Path resolution accepts Windows separators and absolute paths
  3. Workspace discovery skips vendored / build directories
  4. Rule knowledge base produces explanations
  5. MCP server module imports, and every tool works end to end
"""

import os
import shutil
import sys
import tempfile
import unittest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

MOCK_PROJECT = os.path.join(PROJECT_ROOT, "tests", "mock_project")

from saga_lint.linter import SagaLinter
from saga_lint.rule_docs import format_rule_explanation, get_all_rules, get_rule


class TestLinterGuards(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.linter = SagaLinter(self.tmp)

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _write(self, name, data: bytes):
        with open(os.path.join(self.tmp, name), "wb") as f:
            f.write(data)

    def test_missing_file(self):
        self.assertEqual(self.linter.lint_file("nope.js"), [])

    def test_binary_file(self):
        self._write("blob.js", b"\x00\x01compiled\x00")
        self.assertEqual(self.linter.lint_file("blob.js"), [])

    def test_unsupported_extension(self):
        self._write("saga.py", b"yield call(fn)\n")
        self.assertEqual(self.linter.lint_file("saga.py"), [])

    def test_syntax_errors_still_linted(self):
        self._write("broken.js", (
            b"import { call } from 'typed-redux-saga';\n"
            b"function* s() {\n    yield call(fn);\n}\n"
            b"const = ;\n"
        ))
        violations = self.linter.lint_file("broken.js")
        self.assertEqual([v.line_number for v in violations], [3])

    def test_cache_and_invalidate(self):
        self._write("a.js", b"import { call } from 'typed-redux-saga';\nfunction* s() { yield call(f); }\n")
        self.assertEqual(len(self.linter.lint_file("a.js")), 1)
        self._write("a.js", b"import { call } from 'typed-redux-saga';\nfunction* s() { yield* call(f); }\n")
        self.assertEqual(len(self.linter.lint_file("a.js")), 1)  # cached tree
        self.linter.invalidate("a.js")
        self.assertEqual(self.linter.lint_file("a.js"), [])


class TestPathsAndDiscovery(unittest.TestCase):

    def setUp(self):
        self.linter = SagaLinter(MOCK_PROJECT)

    def test_windows_separators(self):
        violations = self.linter.lint_file("src\\sagas\\user.js")
        self.assertEqual(len(violations), 4)
        self.assertEqual(violations[0].file_path, "src/sagas/user.js")

    def test_absolute_path(self):
        path = os.path.join(MOCK_PROJECT, "src", "sagas", "user.js")
        self.assertEqual(len(self.linter.lint_file(path)), 4)

    def test_discovery_skips_node_modules(self):
        files = self.linter.discover_files()
        self.assertEqual(files, [
            "src/sagas/clean.js",
            "src/sagas/typed.ts",
            "src/sagas/user.js",
            "src/store/legacy.js",
        ])

    def test_lint_workspace(self):
        results = self.linter.lint_workspace()
        self.assertEqual(sorted(results), ["src/sagas/typed.ts", "src/sagas/user.js"])
        self.assertEqual(len(results["src/sagas/user.js"]), 4)


class TestRuleDocs(unittest.TestCase):

    def test_explanations(self):
        for rule_id in get_all_rules():
            self.assertGreater(len(format_rule_explanation(rule_id)), 50)

    def test_plugin_prefix(self):
        self.assertIs(get_rule("typed-redux-saga/delegate-effects"), get_rule("delegate-effects"))
        self.assertTrue(get_rule("delegate-effects").fixable)

    def test_unknown_rule(self):
        self.assertTrue(format_rule_explanation("no-such-rule").startswith("Unknown rule"))


class TestServerTools(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        import fastmcp_server
        cls.server = fastmcp_server

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.workspace = os.path.join(self.tmp, "ws")
        shutil.copytree(MOCK_PROJECT, self.workspace)
        self.server.load_workspace(self.workspace)

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def test_requires_workspace(self):
        self.server.linter = None
        self.assertTrue(self.server.list_violations("src/sagas/user.js").startswith("Error"))
        self.assertTrue(self.server.apply_fix("src/sagas/user.js", 6).startswith("Error"))

    def test_load_workspace(self):
        msg = self.server.load_workspace(self.workspace)
        self.assertIn("Source files found: 4", msg)
        self.assertTrue(self.server.load_workspace("/nonexistent/ws").startswith("Error"))

    def test_list_violations(self):
        out = self.server.list_violations("src/sagas/user.js")
        self.assertIn("4 violations", out)
        self.assertIn("Line 6:18", out)
        self.assertIn("No violations", self.server.list_violations("src/sagas/clean.js"))

    def test_lint_workspace(self):
        out = self.server.lint_workspace()
        self.assertIn("6 violations in 2 file(s)", out)

    def test_propose_fix_with_fallback(self):
        out = self.server.propose_fix("src/sagas/user.js", 8)
        self.assertIn("Closest match", out)
        out = self.server.propose_fix("src/sagas/user.js", 9)
        self.assertIn("yield* E.delay(100)", out)

    def test_apply_then_verify(self):
        out = self.server.apply_fix("src/sagas/user.js", 7)
        self.assertIn("Successfully applied 1 edit(s)", out)
        out = self.server.verify_fix("src/sagas/user.js", 7)
        self.assertTrue(out.startswith("**VERIFIED**"))
        out = self.server.verify_fix("src/sagas/user.js", 6)
        self.assertTrue(out.startswith("**STILL PRESENT**"))
        self.assertIn("[FIX FAILED]", self.server.list_violations("src/sagas/user.js"))

    def test_fix_all(self):
        out = self.server.fix_all("src/sagas/user.js", dry_run=True)
        self.assertIn("| Would fix | 4 |", out)
        out = self.server.fix_all("src/sagas/user.js")
        self.assertIn("| Violations remaining | 0 |", out)
        self.assertIn("No violations", self.server.list_violations("src/sagas/user.js"))

    def test_explain_and_effects(self):
        self.assertIn("yield*", self.server.explain_rule())
        out = self.server.list_effects()
        self.assertIn("`typed-redux-saga/macro`", out)
        self.assertIn("`call`", out)


if __name__ == "__main__":
    unittest.main()
