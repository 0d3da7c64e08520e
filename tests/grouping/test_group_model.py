import unittest

from commit_composer.grouping.group_model import (
    ChangeGroup,
    ChangeKind,
    ChangeUnit,
    Classification,
    ClassificationOverride,
)


HUNK = (
    "diff --git a/app.py b/app.py\n"
    "--- a/app.py\n"
    "+++ b/app.py\n"
    "@@ -1,2 +1,3 @@\n"
    "-old = 1\n"
    "+new = 1\n"
    "+more = 2\n"
    " unchanged = 3\n"
)


class TestChangeUnit(unittest.TestCase):
    def test_from_diff_counts_lines(self) -> None:
        unit = ChangeUnit.from_diff("app.py", HUNK)
        self.assertEqual(unit.insertions, 2)
        self.assertEqual(unit.deletions, 1)
        self.assertEqual(unit.kind, ChangeKind.MODIFIED)
        self.assertEqual(unit.added_lines(), ["new = 1", "more = 2"])
        self.assertEqual(unit.removed_lines(), ["old = 1"])
        self.assertTrue(unit.has_content)

    def test_content_lines_that_look_like_file_headers(self) -> None:
        hunk = (
            "diff --git a/db/schema.sql b/db/schema.sql\n"
            "--- a/db/schema.sql\n"
            "+++ b/db/schema.sql\n"
            "@@ -1,2 +1,2 @@\n"
            "--- old comment\n"
            "-SELECT 1;\n"
            "+++i;\n"
            "+SELECT 2;\n"
        )
        unit = ChangeUnit.from_diff("db/schema.sql", hunk)
        self.assertEqual((unit.insertions, unit.deletions), (2, 2))
        self.assertEqual(unit.removed_lines(), ["-- old comment", "SELECT 1;"])
        self.assertEqual(unit.added_lines(), ["++i;", "SELECT 2;"])

    def test_from_diff_passes_extra_fields(self) -> None:
        unit = ChangeUnit.from_diff("new.py", HUNK, ChangeKind.ADDED, refs=("#4",))
        self.assertEqual(unit.kind, ChangeKind.ADDED)
        self.assertEqual(unit.refs, ("#4",))

    def test_binary_units_have_no_lines(self) -> None:
        unit = ChangeUnit(path="logo.png", binary=True, hunk="+garbage")
        self.assertEqual(unit.added_lines(), [])
        self.assertEqual(unit.removed_lines(), [])
        self.assertFalse(unit.has_content)

    def test_kind_from_status(self) -> None:
        cases = {"A": ChangeKind.ADDED, "??": ChangeKind.ADDED, "M": ChangeKind.MODIFIED,
                 "D": ChangeKind.DELETED, "R100": ChangeKind.RENAMED, "T": ChangeKind.MODIFIED}
        for status, kind in cases.items():
            with self.subTest(status=status):
                self.assertEqual(ChangeKind.from_status(status), kind)


class TestChangeGroup(unittest.TestCase):
    def test_aggregates(self) -> None:
        units = (
            ChangeUnit(path="a.py", insertions=3, deletions=1, hunk="x"),
            ChangeUnit(path="b.py", insertions=2, deletions=4, hunk="y"),
        )
        group = ChangeGroup(units=units, first_index=2)
        self.assertEqual(group.files, ["a.py", "b.py"])
        self.assertEqual(group.diffs, {"a.py": "x", "b.py": "y"})
        self.assertEqual(group.insertions, 5)
        self.assertEqual(group.deletions, 5)
        self.assertEqual(len(group), 2)

    def test_equality_ignores_classification(self) -> None:
        units = (ChangeUnit(path="a.py"),)
        self.assertEqual(
            ChangeGroup(units=units, classification=Classification("fix")),
            ChangeGroup(units=units),
        )


class TestClassificationOverride(unittest.TestCase):
    def test_apply(self) -> None:
        computed = Classification(type="chore", scope="core", breaking=False)
        cases = [
            (ClassificationOverride(), computed),
            (ClassificationOverride(type="perf"), Classification("perf", "core", False)),
            (ClassificationOverride(scope=""), Classification("chore", None, False)),
            (ClassificationOverride(scope="api"), Classification("chore", "api", False)),
            (ClassificationOverride(breaking=True), Classification("chore", "core", True)),
        ]
        for override, expected in cases:
            with self.subTest(override=override):
                self.assertEqual(override.apply(computed), expected)


if __name__ == "__main__":
    unittest.main()
