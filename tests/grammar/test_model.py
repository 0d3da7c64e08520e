import unittest

from commit_composer.grammar.model import BREAKING_CHANGE, CommitMessage, Footer


class TestCommitMessageModel(unittest.TestCase):
    def test_header(self) -> None:
        message = CommitMessage(type="fix", scope="cli", description="exit with code 4")
        self.assertEqual(message.header, "fix(cli): exit with code 4")

    def test_type_is_stored_lowercase(self) -> None:
        self.assertEqual(CommitMessage(type="Docs", description="x").type, "docs")

    def test_sequences_become_tuples(self) -> None:
        message = CommitMessage(type="feat", description="x", body=["a"], footers=[Footer("Refs", "1")])
        self.assertEqual(message.body, ("a",))
        self.assertIsInstance(message.footers, tuple)

    def test_build_sets_marker_for_breaking(self) -> None:
        message = CommitMessage.build(type="feat", description="x", breaking=True)
        self.assertTrue(message.breaking)
        self.assertTrue(message.breaking_marker)
        self.assertEqual(message.header, "feat!: x")

    def test_build_derives_breaking_from_footer(self) -> None:
        message = CommitMessage.build(type="feat", description="x", footers=[Footer(BREAKING_CHANGE, "y")])
        self.assertTrue(message.breaking)
        self.assertFalse(message.breaking_marker)

    def test_build_drops_empty_scope(self) -> None:
        self.assertIsNone(CommitMessage.build(type="chore", scope="", description="x").scope)

    def test_footer_render(self) -> None:
        self.assertEqual(Footer("Refs", "#3").render(), "Refs: #3")
        self.assertEqual(Footer("Fixes", "3", " #").render(), "Fixes #3")
        self.assertTrue(Footer("BREAKING-CHANGE", "y").is_breaking)
        self.assertFalse(Footer("Refs", "y").is_breaking)


if __name__ == "__main__":
    unittest.main()
