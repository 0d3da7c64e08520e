import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from commit_composer.config.loader import DEFAULTS, ConfigError, load_config


class TestConfigLoader(unittest.TestCase):
    """Tests for the configuration loader."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.home_dir = Path(self._tmp.name) / "home"
        self.repo_dir = Path(self._tmp.name) / "repo"
        self.home_dir.mkdir()
        self.repo_dir.mkdir()
        patcher = patch(
            "commit_composer.config.loader._get_config_directory", return_value=self.home_dir
        )
        patcher.start()
        self.addCleanup(patcher.stop)

    def _write_user(self, content) -> None:
        text = content if isinstance(content, str) else json.dumps(content)
        (self.home_dir / "config.json").write_text(text, encoding="utf-8")

    def _write_repo(self, content) -> None:
        text = content if isinstance(content, str) else json.dumps(content)
        (self.repo_dir / ".commit_composer.json").write_text(text, encoding="utf-8")

    def test_defaults_without_files(self) -> None:
        result = load_config(self.repo_dir)
        self.assertEqual(result, DEFAULTS)
        self.assertNotIn("ollama", result)

    def test_user_config(self) -> None:
        self._write_user({
            "language": "German",
            "ollama": {"base_url": "http://localhost", "port": 11434, "model": "llama3", "request_timeout": 30},
        })
        result = load_config(self.repo_dir)
        self.assertEqual(result["language"], "German")
        self.assertEqual(result["ollama"]["model"], "llama3")
        self.assertEqual(result["max_workers"], DEFAULTS["max_workers"])

    def test_repo_config_wins(self) -> None:
        self._write_user({"language": "German", "split": False})
        self._write_repo({"language": "fr"})
        result = load_config(self.repo_dir)
        self.assertEqual(result["language"], "fr")
        self.assertTrue(result["split"])

    def test_without_repo_root(self) -> None:
        self._write_user({"max_workers": 8})
        self.assertEqual(load_config()["max_workers"], 8)

    def test_invalid_json(self) -> None:
        self._write_repo("{invalid}")
        with self.assertRaises(ConfigError):
            load_config(self.repo_dir)

    def test_not_an_object(self) -> None:
        self._write_user("[1, 2]")
        with self.assertRaises(ConfigError):
            load_config(self.repo_dir)

    def test_invalid_values(self) -> None:
        cases = [
            {"language": 1},
            {"split": "yes"},
            {"max_workers": 0},
            {"max_workers": True},
            {"summarizer_timeout": -1},
            {"summarizer_timeout": "10"},
            {"scope_roots": "src"},
            {"ollama": "http://localhost"},
            {"ollama": {"base_url": "http://localhost"}},
            {"ollama": {"base_url": "http://localhost", "port": "11434", "model": "m"}},
            {"ollama": {"base_url": "http://localhost", "port": 1, "model": "m", "max_tokens": "many"}},
        ]
        for data in cases:
            with self.subTest(data=data):
                self._write_repo(data)
                with self.assertRaises(ConfigError):
                    load_config(self.repo_dir)


if __name__ == "__main__":
    unittest.main()
