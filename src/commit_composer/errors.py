"""
Exception types used across commit_composer.

Defining explicit error classes lets the CLI and callers tell apart
recoverable user-facing problems (a malformed message, a summarizer that
did not answer) from internal defects.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ComposerError(Exception):
    """Base class for all commit_composer specific errors."""


class GrammarErrorKind(Enum):
    """Categories of Conventional Commit grammar violations."""

    EMPTY_MESSAGE = "EmptyMessage"
    MALFORMED_HEADER = "MalformedHeader"
    MISSING_BLANK_LINE_AFTER_HEADER = "MissingBlankLineAfterHeader"
    INVALID_BODY = "InvalidBody"
    INVALID_FOOTER_TOKEN = "InvalidFooterToken"
    INVALID_FOOTER_VALUE = "InvalidFooterValue"
    BREAKING_CHANGE_INCONSISTENCY = "BreakingChangeInconsistency"

    def __str__(self) -> str:
        return self.value


class GrammarError(ComposerError):
    """Raised when text or a model violates the commit message grammar.

    Attributes
    ----------
    kind : GrammarErrorKind
        What went wrong.
    line : int
        1-based line number, or 0 when the error is not tied to a line.
    column : int
        1-based column number, or 0 when the error is not tied to a column.
    message : str
        Human readable explanation.
    """

    def __init__(self, kind: GrammarErrorKind, line: int, column: int, message: str) -> None:
        self.kind = kind
        self.line = line
        self.column = column
        self.message = message
        super().__init__(f"{line}:{column}: {kind}: {message}")


class SegmentationAmbiguityWarning(UserWarning):
    """Diagnostic recorded when the segmenter falls back to one group per unit."""


class ComposerInvariantViolation(ComposerError):
    """Raised when a composed message does not survive render -> parse.

    This always indicates a defect inside commit_composer, never a problem
    with the caller's input.
    """


class CollaboratorFailure(ComposerError):
    """Raised when an external collaborator (e.g. a summarizer) fails."""


class CollaboratorTimeout(CollaboratorFailure):
    """Raised when an external collaborator does not answer in time."""


class MissingDescription(ComposerError):
    """A group could not be given a description.

    Produced when the summarizer failed for one group. Other groups of
    the same run are unaffected.
    """

    def __init__(self, group_index: int, cause: Optional[BaseException] = None) -> None:
        self.group_index = group_index
        self.cause = cause
        # Set by Composer.compose so callers can still reach the other groups.
        self.composition: Any = None
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"No description available for commit group {group_index + 1}{detail}")


class CompositionFailed(ComposerError):
    """Raised when a hard failure aborts a composition run.

    ``composition`` holds the proposals completed before the failure.
    """

    def __init__(self, cause: BaseException, composition: Any) -> None:
        self.cause = cause
        self.composition = composition
        super().__init__(f"Composition aborted: {cause}")
