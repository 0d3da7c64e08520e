"""
Git change reader for commit_composer.

This module reads the pending changes of a Git repository and turns them
into :class:`ChangeUnit` instances. It is read-only: staging and
committing are left to the caller. All subprocess calls go through
:meth:`GitClient._run` so that unit tests can mock them easily.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from commit_composer.errors import ComposerError
from commit_composer.grouping.group_model import ChangeKind, ChangeUnit


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


@dataclass
class FileChange:
    """Representation of a single file change in the repository."""

    path: str
    status: str  # e.g. 'M' modified, 'A' added, 'D' deleted, 'R' renamed
    old_path: Optional[str] = None


class GitError(ComposerError):
    """Raised when a Git command fails."""


class GitClient:
    """Read pending changes from a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        Walk upwards until a ``.git`` entry is found or the filesystem
        root is reached.
        """
        current = start.resolve()
        while True:
            if (current / ".git").exists():
                return current
            if current.parent == current:
                return None
            current = current.parent

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        Raises
        ------
        GitError
            If the command exits with a non-zero status when ``check`` is True.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            logger.error("Failed to execute git: %s", exc)
            raise GitError(f"Failed to execute git: {exc}") from exc

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    @staticmethod
    def _diff_args(staged: bool) -> List[str]:
        # Staged changes only, or everything tracked that differs from HEAD.
        return ["diff", "--cached"] if staged else ["diff", "HEAD"]

    # ------------------------------------------------------------------
    # Status and change detection
    # ------------------------------------------------------------------
    def get_changes(self, staged: bool = True) -> List[FileChange]:
        """Get the list of changed files.

        Parameters
        ----------
        staged : bool
            Only staged changes when True, otherwise all tracked changes
            relative to ``HEAD``. Untracked files are never included.

        Raises
        ------
        GitError
            If the git command fails.
        """
        result = self._run(self._diff_args(staged) + ["--name-status", "-M", "-z"])
        fields = result.stdout.split("\0")
        changes: List[FileChange] = []
        index = 0
        while index < len(fields):
            status = fields[index].strip()
            if not status:
                index += 1
                continue
            if status[0] in {"R", "C"} and index + 2 < len(fields):
                changes.append(
                    FileChange(path=fields[index + 2], status=status[0], old_path=fields[index + 1])
                )
                index += 3
            elif index + 1 < len(fields):
                changes.append(FileChange(path=fields[index + 1], status=status[0]))
                index += 2
            else:
                break
        return changes

    def get_numstat(self, staged: bool = True) -> Dict[str, Tuple[Optional[int], Optional[int]]]:
        """Return ``{path: (insertions, deletions)}``; binary files map to ``(None, None)``."""
        result = self._run(self._diff_args(staged) + ["--numstat", "-M", "-z"])
        fields = result.stdout.split("\0")
        stats: Dict[str, Tuple[Optional[int], Optional[int]]] = {}
        index = 0
        while index < len(fields):
            entry = fields[index]
            if not entry.strip():
                index += 1
                continue
            parts = entry.split("\t")
            if len(parts) < 3:
                index += 1
                continue
            added, removed, path = parts[0], parts[1], parts[2]
            if not path and index + 2 < len(fields):
                # Renames list the old and new paths as separate fields.
                path = fields[index + 2]
                index += 3
            else:
                index += 1
            counts = (None, None) if added == "-" else (int(added), int(removed))
            stats[path] = counts
        return stats

    def get_diff(self, file_path: str, staged: bool = True, old_path: Optional[str] = None) -> str:
        """Return the unified diff of a single file."""
        paths = [old_path, file_path] if old_path else [file_path]
        result = self._run(self._diff_args(staged) + ["-M", "--"] + paths, check=True)
        return result.stdout

    def get_change_units(self, staged: bool = True) -> List[ChangeUnit]:
        """Read pending changes as :class:`ChangeUnit` instances, in path order."""
        stats = self.get_numstat(staged)
        units: List[ChangeUnit] = []
        for change in self.get_changes(staged):
            insertions, deletions = stats.get(change.path, (0, 0))
            binary = insertions is None
            hunk = "" if binary else self.get_diff(change.path, staged, change.old_path)
            units.append(
                ChangeUnit(
                    path=change.path,
                    kind=ChangeKind.from_status(change.status),
                    insertions=insertions or 0,
                    deletions=deletions or 0,
                    hunk=hunk,
                    old_path=change.old_path,
                    binary=binary,
                )
            )
        logger.debug("Read %d change unit(s) from git", len(units))
        return units
