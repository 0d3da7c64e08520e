"""
Conventional Commit grammar.

This package provides the message model (:mod:`commit_composer.grammar.model`)
and the parser, validator and renderer
(:mod:`commit_composer.grammar.parser`).
"""

from .model import BREAKING_CHANGE, CommitMessage, Footer  # noqa: F401
from .parser import is_valid, parse, render, validate  # noqa: F401
