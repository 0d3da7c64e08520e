"""
Top-level package for commit_composer.

The main entry points are :class:`commit_composer.composer.Composer`,
which turns change units into Conventional Commit messages, and the
grammar helpers :func:`parse` and :func:`render`. The command line lives
in :mod:`commit_composer.cli`.
"""

__all__ = [
    "__version__",
    "ChangeKind",
    "ChangeUnit",
    "CommitMessage",
    "Composer",
    "Footer",
    "parse",
    "render",
]

__version__ = "0.1.0"

from commit_composer.composer import Composer  # noqa: E402
from commit_composer.grammar import CommitMessage, Footer, parse, render  # noqa: E402
from commit_composer.grouping import ChangeKind, ChangeUnit  # noqa: E402
