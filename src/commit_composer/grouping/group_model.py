"""
Data models for change grouping.

A :class:`ChangeUnit` is the smallest captured edit (one file's delta).
The segmenter partitions units into :class:`ChangeGroup` instances, each
of which should become one commit. The classifier then attaches a
:class:`Classification` to every group.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


def _changed_lines(hunk: str, prefix: str) -> List[str]:
    # ---/+++ file header lines only appear between "diff" and the first @@.
    header = prefix * 3
    in_header = True
    lines: List[str] = []
    for line in hunk.splitlines():
        if line.startswith("diff "):
            in_header = True
        elif line.startswith("@@"):
            in_header = False
        elif line.startswith(prefix) and not (in_header and line.startswith(header)):
            lines.append(line[1:])
    return lines


class ChangeKind(Enum):
    """How a file changed."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"

    @classmethod
    def from_status(cls, status: str) -> "ChangeKind":
        """Map a porcelain/name-status letter (``A``, ``M``, ``D``, ``R``...) to a kind."""
        letter = status.strip()[:1].upper()
        if letter in {"A", "?"}:
            return cls.ADDED
        if letter == "D":
            return cls.DELETED
        if letter in {"R", "C"}:
            return cls.RENAMED
        return cls.MODIFIED


@dataclass(frozen=True)
class ChangeUnit:
    """A single file change.

    Attributes
    ----------
    path : str
        Repository-relative path using ``/`` separators.
    kind : ChangeKind
        Added, modified, deleted or renamed.
    insertions : int
        Number of inserted lines.
    deletions : int
        Number of removed lines.
    hunk : str
        Unified diff for the file. Empty when unavailable.
    old_path : Optional[str]
        Previous path for renames.
    binary : bool
        True for binary files. Their content is never inspected.
    refs : Tuple[str, ...]
        External defect or ticket references known for this change.
    """

    path: str
    kind: ChangeKind = ChangeKind.MODIFIED
    insertions: int = 0
    deletions: int = 0
    hunk: str = ""
    old_path: Optional[str] = None
    binary: bool = False
    refs: Tuple[str, ...] = ()

    @classmethod
    def from_diff(
        cls,
        path: str,
        hunk: str,
        kind: ChangeKind = ChangeKind.MODIFIED,
        **kwargs,
    ) -> "ChangeUnit":
        """Create a unit whose line counts are taken from ``hunk``."""
        return cls(
            path=path,
            kind=kind,
            insertions=len(_changed_lines(hunk, "+")),
            deletions=len(_changed_lines(hunk, "-")),
            hunk=hunk,
            **kwargs,
        )

    def added_lines(self) -> List[str]:
        """Return the content of ``+`` lines of the hunk."""
        return [] if self.binary else _changed_lines(self.hunk, "+")

    def removed_lines(self) -> List[str]:
        """Return the content of ``-`` lines of the hunk."""
        return [] if self.binary else _changed_lines(self.hunk, "-")

    @property
    def has_content(self) -> bool:
        return not self.binary and bool(self.hunk)


@dataclass(frozen=True)
class Classification:
    """Result of classifying a change group."""

    type: str
    scope: Optional[str] = None
    breaking: bool = False


@dataclass(frozen=True)
class ClassificationOverride:
    """Caller supplied answers to judgement calls.

    Every field left as ``None`` keeps the computed value. ``scope=""``
    removes the scope.
    """

    type: Optional[str] = None
    scope: Optional[str] = None
    breaking: Optional[bool] = None

    def apply(self, classification: Classification) -> Classification:
        scope = classification.scope if self.scope is None else (self.scope or None)
        return Classification(
            type=self.type or classification.type,
            scope=scope,
            breaking=classification.breaking if self.breaking is None else self.breaking,
        )


@dataclass
class ChangeGroup:
    """Representation of a logical change destined for one commit.

    Attributes
    ----------
    units : Tuple[ChangeUnit, ...]
        Member units in their original input order.
    first_index : int
        Input index of the first member; groups are ordered by it.
    classification : Optional[Classification]
        Attached by the composer after classification.
    """

    units: Tuple[ChangeUnit, ...]
    first_index: int = 0
    classification: Optional[Classification] = field(default=None, compare=False)

    @property
    def files(self) -> List[str]:
        return [unit.path for unit in self.units]

    @property
    def diffs(self) -> Dict[str, str]:
        return {unit.path: unit.hunk for unit in self.units}

    @property
    def insertions(self) -> int:
        return sum(unit.insertions for unit in self.units)

    @property
    def deletions(self) -> int:
        return sum(unit.deletions for unit in self.units)

    def __len__(self) -> int:
        return len(self.units)
