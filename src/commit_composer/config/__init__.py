"""
Configuration loading for commit_composer.

Provides a loader for the JSON settings file. See
:mod:`commit_composer.config.loader` for implementation details.
"""

from .loader import ConfigError, load_config  # noqa: F401
