"""
Version control integration.

This package contains the read-only Git client that supplies change
units to the composer.
"""

from .git_client import FileChange, GitClient, GitError  # noqa: F401
