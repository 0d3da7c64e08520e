"""
Configuration loader for commit_composer.

Settings are read from a JSON file. A repository-local
``.commit_composer.json`` takes precedence over the user-level
``~/.commit_composer/config.json``. When neither exists the defaults are
used and messages are written by the template summarizer.

Example::

    {
        "language": "German",
        "split": true,
        "max_workers": 4,
        "summarizer_timeout": 30,
        "scope_roots": ["src", "packages"],
        "ollama": {"base_url": "http://localhost", "port": 11434, "model": "llama3"}
    }

If a configuration file is malformed or has fields of the wrong type, a
:class:`ConfigError` is raised.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from commit_composer.errors import ComposerError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


REPO_CONFIG_NAME = ".commit_composer.json"
USER_CONFIG_NAME = "config.json"

DEFAULTS: Dict[str, Any] = {
    "language": "en",
    "split": True,
    "max_workers": 4,
    "summarizer_timeout": 60,
    "scope_roots": ["src", "lib", "packages", "apps", "tests", "test", "docs"],
}


class ConfigError(ComposerError):
    """Raised when a configuration file is malformed or invalid."""


def _get_config_directory() -> Path:
    """Return the user-level configuration directory (``~/.commit_composer``)."""
    return Path.home() / ".commit_composer"


def _candidate_paths(repo_root: Optional[Path]) -> List[Path]:
    paths = []
    if repo_root is not None:
        paths.append(Path(repo_root) / REPO_CONFIG_NAME)
    paths.append(_get_config_directory() / USER_CONFIG_NAME)
    return paths


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _validate_ollama(section: Any) -> None:
    if not isinstance(section, dict):
        raise ConfigError("'ollama' must be an object")
    required_keys = ["base_url", "port", "model"]
    missing = [key for key in required_keys if key not in section]
    if missing:
        logger.error("Ollama configuration missing required keys: %s", missing)
        raise ConfigError(f"Missing required 'ollama' keys: {', '.join(missing)}")
    if not isinstance(section.get("base_url"), str):
        raise ConfigError("'ollama.base_url' must be a string")
    if not isinstance(section.get("port"), int) or isinstance(section.get("port"), bool):
        raise ConfigError("'ollama.port' must be an integer")
    if not isinstance(section.get("model"), str):
        raise ConfigError("'ollama.model' must be a string")
    if "request_timeout" in section and not _is_number(section["request_timeout"]):
        raise ConfigError("'ollama.request_timeout' must be a number")
    if "max_tokens" in section and not isinstance(section["max_tokens"], int):
        raise ConfigError("'ollama.max_tokens' must be an integer")


def _validate(data: Dict[str, Any]) -> None:
    if "language" in data and not isinstance(data["language"], str):
        raise ConfigError("'language' must be a string")
    if "split" in data and not isinstance(data["split"], bool):
        raise ConfigError("'split' must be a boolean")
    if "max_workers" in data:
        workers = data["max_workers"]
        if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
            raise ConfigError("'max_workers' must be a positive integer")
    if "summarizer_timeout" in data:
        timeout = data["summarizer_timeout"]
        if not _is_number(timeout) or timeout <= 0:
            raise ConfigError("'summarizer_timeout' must be a positive number")
    if "scope_roots" in data:
        roots = data["scope_roots"]
        if not isinstance(roots, list) or not all(isinstance(root, str) for root in roots):
            raise ConfigError("'scope_roots' must be a list of strings")
    if "ollama" in data:
        _validate_ollama(data["ollama"])


def load_config(repo_root: Optional[Path] = None) -> Dict[str, Any]:
    """Load the configuration and return it merged over the defaults.

    Args:
        repo_root: Repository root; ``.commit_composer.json`` in it wins
                   over the user-level file.

    Returns:
        A dictionary with the keys ``language``, ``split``,
        ``max_workers``, ``summarizer_timeout``, ``scope_roots`` and,
        when configured, ``ollama``.

    Raises:
        ConfigError: If the configuration file is malformed or invalid.
    """
    config: Dict[str, Any] = dict(DEFAULTS)
    for config_path in _candidate_paths(repo_root):
        if not config_path.exists():
            continue
        try:
            content = config_path.read_text(encoding="utf-8")
            data = json.loads(content)
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Failed to read or parse configuration file: %s", exc)
            raise ConfigError(f"Invalid JSON in {config_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a JSON object")
        _validate(data)
        config.update(data)
        logger.debug("Loaded configuration from: %s", config_path)
        break
    else:
        logger.debug("No configuration file found; using defaults")
    return config
