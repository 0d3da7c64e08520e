import unittest

from commit_composer.grouping import signals
from commit_composer.grouping.group_model import ChangeUnit


def _unit(path: str, *lines: str, **kwargs) -> ChangeUnit:
    return ChangeUnit.from_diff(path, "\n".join(lines), **kwargs)


class TestPathSignals(unittest.TestCase):
    def test_is_test_path(self) -> None:
        cases = {
            "tests/auth_test.py": True,
            "src/auth/test_login.py": True,
            "web/Button.spec.ts": True,
            "java/LoginTests.java": True,
            "src/auth/login.py": False,
            "src/contest.py": False,
        }
        for path, expected in cases.items():
            with self.subTest(path=path):
                self.assertEqual(signals.is_test_path(path), expected)

    def test_is_doc_path(self) -> None:
        cases = {
            "docs/install.md": True,
            "README": True,
            "CHANGELOG.rst": True,
            "docs/conf.py": True,
            "requirements.txt": False,
            "src/app.py": False,
        }
        for path, expected in cases.items():
            with self.subTest(path=path):
                self.assertEqual(signals.is_doc_path(path), expected)

    def test_module_key(self) -> None:
        cases = {
            "src/auth/login.py": "auth",
            "src/main.py": None,
            "README.md": None,
            "web/app.js": "web",
            "docs/install.md": None,
            "tests/auth/test_login.py": "auth",
        }
        for path, expected in cases.items():
            with self.subTest(path=path):
                self.assertEqual(signals.module_key(path), expected)
        self.assertEqual(signals.module_key("packages/core/x.py", roots=("packages",)), "core")
        self.assertEqual(signals.module_key("src/auth/x.py", roots=("packages",)), "src")

    def test_tested_stem(self) -> None:
        self.assertEqual(signals.tested_stem("tests/test_login.py"), "login")
        self.assertEqual(signals.tested_stem("tests/auth_test.go"), "auth")
        self.assertIsNone(signals.tested_stem("src/login.py"))
        self.assertIsNone(signals.tested_stem("tests/test.py"))


class TestContentSignals(unittest.TestCase):
    def test_definitions(self) -> None:
        found = signals.definitions([
            "def login(user, password):",
            "    class Session:",
            "x = 1",
            "func (s *Server) Start(ctx context.Context) error {",
            "export default async function render(props) {",
        ])
        self.assertEqual(found["login"], "def login(user, password):")
        self.assertEqual(found["Session"], "class Session:")
        self.assertIn("Start", found)
        self.assertIn("render", found)
        self.assertNotIn("x", found)

    def test_touched_symbols_include_hunk_context(self) -> None:
        unit = _unit("src/auth/login.py", "@@ -10,3 +10,4 @@ def authenticate(user):", "+    audit(user)")
        self.assertEqual(signals.touched_symbols(unit), {"authenticate"})

    def test_referenced_identifiers(self) -> None:
        unit = _unit("web/views.py", "+    token = make_token(self, user)")
        names = signals.referenced_identifiers(unit)
        self.assertIn("make_token", names)
        self.assertIn("user", names)
        self.assertNotIn("self", names)

    def test_ticket_refs(self) -> None:
        unit = _unit("src/app.py", "+# see JIRA-123 and #45, encoded as UTF-8", "+x = 'ABC-9'")
        self.assertEqual(signals.ticket_refs(unit), {"JIRA-123", "#45"})
        self.assertEqual(signals.ticket_refs(ChangeUnit(path="a.py", refs=("#7",))), {"#7"})

    def test_has_defect_reference(self) -> None:
        self.assertTrue(signals.has_defect_reference(_unit("a.py", "+# fix crash on empty list")))
        self.assertTrue(signals.has_defect_reference(ChangeUnit(path="a.py", refs=("BUG-1",))))
        self.assertFalse(signals.has_defect_reference(_unit("a.py", "+prefix = 'bugfix'")))

    def test_is_whitespace_only(self) -> None:
        self.assertTrue(signals.is_whitespace_only(_unit("a.py", "-def f(a,b):", "+def f(a, b):")))
        self.assertFalse(signals.is_whitespace_only(_unit("a.py", "-x = 1", "+x = 2")))
        self.assertFalse(signals.is_whitespace_only(ChangeUnit(path="a.py")))


if __name__ == "__main__":
    unittest.main()
