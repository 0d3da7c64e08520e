import unittest

from commit_composer.grouping.change_classifier import (
    adds_capability,
    breaks_public_contract,
    classify_group,
    derive_scope,
)
from commit_composer.grouping.group_model import (
    ChangeGroup,
    ChangeKind,
    ChangeUnit,
    Classification,
    ClassificationOverride,
)


def _unit(path: str, *lines: str, kind: ChangeKind = ChangeKind.MODIFIED, **kwargs) -> ChangeUnit:
    return ChangeUnit.from_diff(path, "\n".join(lines), kind, **kwargs)


def _group(*units: ChangeUnit) -> ChangeGroup:
    return ChangeGroup(units=tuple(units))


class TestClassifyGroup(unittest.TestCase):
    def test_documentation_only(self) -> None:
        group = _group(ChangeUnit(path="docs/install.md", kind=ChangeKind.MODIFIED))
        self.assertEqual(classify_group(group), Classification(type="docs"))

    def test_tests_only(self) -> None:
        group = _group(ChangeUnit(path="tests/auth_test.py"), ChangeUnit(path="tests/auth_test.go"))
        self.assertEqual(classify_group(group).type, "test")

    def test_whitespace_only(self) -> None:
        group = _group(_unit("src/app/views.py", "-def f(a,b):", "+def f(a, b):"))
        self.assertEqual(classify_group(group), Classification(type="style", scope="app"))

    def test_new_source_file_is_feat(self) -> None:
        group = _group(
            _unit("src/auth/oauth.py", "+def login_with_oauth(token):", "+    return token", kind=ChangeKind.ADDED)
        )
        self.assertEqual(classify_group(group), Classification(type="feat", scope="auth"))

    def test_new_symbol_with_defect_reference_is_fix(self) -> None:
        group = _group(
            _unit("src/auth/login.py", "+# fix crash on empty password", "+def check_password(pw):")
        )
        self.assertEqual(classify_group(group).type, "fix")

    def test_net_deletion_is_fix(self) -> None:
        group = _group(_unit("src/core/cache.py", "-    a = 1", "-    b = 2", "+    c = 3"))
        self.assertEqual(classify_group(group).type, "fix")

    def test_private_removal_is_not_breaking(self) -> None:
        group = _group(_unit("src/core/cache.py", "-def _helper():", "-    pass"))
        classification = classify_group(group)
        self.assertEqual(classification.type, "fix")
        self.assertFalse(classification.breaking)

    def test_other_changes_are_chore(self) -> None:
        group = _group(_unit("setup.cfg", "+[flake8]", "+max-line-length = 100"))
        self.assertEqual(classify_group(group), Classification(type="chore"))

    def test_removed_public_symbol_with_replacement_is_breaking_feat(self) -> None:
        group = _group(_unit("src/api/client.py", "-def fetch(url):", "+def fetch_all(urls):"))
        self.assertEqual(classify_group(group), Classification(type="feat", scope="api", breaking=True))

    def test_incompatible_signature_is_breaking_fix(self) -> None:
        group = _group(_unit("src/api/client.py", "-def fetch(url):", "+def fetch(url, retries):"))
        self.assertEqual(classify_group(group), Classification(type="fix", scope="api", breaking=True))

    def test_deleted_module_is_breaking(self) -> None:
        group = _group(_unit("lib/util/parse.py", "-def parse(text):", "-    return text", kind=ChangeKind.DELETED))
        classification = classify_group(group)
        self.assertTrue(classification.breaking)
        self.assertEqual(classification.type, "fix")

    def test_same_inputs_same_classification(self) -> None:
        group = _group(_unit("src/api/client.py", "-def fetch(url):", "+def fetch_all(urls):"))
        self.assertEqual(classify_group(group), classify_group(group))

    def test_override(self) -> None:
        group = _group(_unit("src/api/client.py", "-def fetch(url):", "+def fetch(url, retries):"))
        self.assertEqual(
            classify_group(group, override=ClassificationOverride(type="refactor", scope="", breaking=False)),
            Classification(type="refactor"),
        )


class TestContractSignals(unittest.TestCase):
    def test_compatible_signature_changes(self) -> None:
        cases = [
            ("-def fetch(url):", "+def fetch(url, retries=3):"),
            ("-def fetch(url):", "+def  fetch(url):"),
            ("-class Client:", "+class Client(Base):"),
        ]
        for old, new in cases:
            with self.subTest(new=new):
                self.assertFalse(breaks_public_contract(_group(_unit("src/api/client.py", old, new))))

    def test_definitions_in_tests_and_docs_are_ignored(self) -> None:
        group = _group(
            _unit("tests/test_client.py", "-def test_fetch():"),
            _unit("docs/conf.py", "-def setup(app):"),
        )
        self.assertFalse(breaks_public_contract(group))
        self.assertFalse(adds_capability(group))

    def test_derive_scope(self) -> None:
        same = _group(ChangeUnit(path="src/auth/login.py"), ChangeUnit(path="tests/auth/test_login.py"))
        mixed = _group(ChangeUnit(path="src/auth/login.py"), ChangeUnit(path="src/billing/pay.py"))
        self.assertEqual(derive_scope(same), "auth")
        self.assertIsNone(derive_scope(mixed))
        self.assertIsNone(derive_scope(_group(ChangeUnit(path="README.md"))))
        self.assertEqual(derive_scope(_group(ChangeUnit(path="packages/ui/x.ts")), roots=("packages",)), "ui")


if __name__ == "__main__":
    unittest.main()
