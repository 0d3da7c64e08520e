"""
Partition change units into logically independent groups.

Units are linked pairwise by a small set of affinity signals:

* same module (first directory below a configured root),
* shared symbols: one change defines a symbol the other defines or uses,
  or a test file targets the module another change edits,
* shared intent: both mention the same issue or ticket reference.

Each connected component of the resulting graph becomes one
:class:`ChangeGroup`. When no pair is related the segmenter keeps one
group per unit; a false merge of unrelated changes is worse than an
extra small commit. The outcome only depends on the units and their
order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from commit_composer.errors import SegmentationAmbiguityWarning
from commit_composer.grouping import signals
from commit_composer.grouping.group_model import ChangeGroup, ChangeUnit


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


@dataclass(frozen=True)
class _Profile:
    """Signals extracted once per unit."""

    module: Optional[str]
    stem: str
    is_test: bool
    tested_stem: Optional[str]
    symbols: Set[str] = field(default_factory=set)
    references: Set[str] = field(default_factory=set)
    tickets: Set[str] = field(default_factory=set)

    @classmethod
    def of(cls, unit: ChangeUnit, roots: Sequence[str]) -> "_Profile":
        return cls(
            module=signals.module_key(unit.path, roots),
            stem=PurePosixPath(unit.path.replace("\\", "/")).stem.lower(),
            is_test=signals.is_test_path(unit.path),
            tested_stem=signals.tested_stem(unit.path),
            symbols=signals.touched_symbols(unit),
            references=signals.referenced_identifiers(unit),
            tickets=signals.ticket_refs(unit),
        )


def _affinity(a: _Profile, b: _Profile) -> Optional[str]:
    """Return the name of the first signal relating ``a`` and ``b``."""
    if a.module is not None and a.module == b.module:
        return f"module {a.module}"
    shared = (a.symbols & (b.symbols | b.references)) | (b.symbols & a.references)
    if shared:
        return f"symbol {sorted(shared)[0]}"
    if a.tested_stem and not b.is_test and a.tested_stem == b.stem:
        return f"test target {a.tested_stem}"
    if b.tested_stem and not a.is_test and b.tested_stem == a.stem:
        return f"test target {b.tested_stem}"
    tickets = a.tickets & b.tickets
    if tickets:
        return f"reference {sorted(tickets)[0]}"
    return None


@dataclass(frozen=True)
class Segmentation:
    """Groups produced for one composition run.

    Attributes
    ----------
    groups : Tuple[ChangeGroup, ...]
        Groups ordered by the input index of their first member.
    diagnostics : Tuple[SegmentationAmbiguityWarning, ...]
        Non-fatal observations, e.g. the one-group-per-unit fallback.
    """

    groups: Tuple[ChangeGroup, ...]
    diagnostics: Tuple[SegmentationAmbiguityWarning, ...] = ()

    @property
    def ambiguous(self) -> bool:
        return bool(self.diagnostics)


def segment(
    units: Iterable[ChangeUnit],
    roots: Sequence[str] = signals.DEFAULT_SCOPE_ROOTS,
) -> Segmentation:
    """Partition ``units`` into change groups.

    Parameters
    ----------
    units : Iterable[ChangeUnit]
        Units in discovery order.
    roots : Sequence[str]
        Directories whose immediate children are treated as modules.

    Returns
    -------
    Segmentation
        Every unit appears in exactly one group.
    """
    units = list(units)
    profiles = [_Profile.of(unit, roots) for unit in units]
    parent = list(range(len(units)))

    def find(index: int) -> int:
        while parent[index] != index:
            parent[index] = parent[parent[index]]
            index = parent[index]
        return index

    linked = False
    for i in range(len(units)):
        for j in range(i + 1, len(units)):
            reason = _affinity(profiles[i], profiles[j])
            if reason is None:
                continue
            linked = True
            root_i, root_j = find(i), find(j)
            if root_i != root_j:
                # The lowest index stays the root.
                parent[max(root_i, root_j)] = min(root_i, root_j)
                logger.debug("Linked %s and %s (%s)", units[i].path, units[j].path, reason)

    components: Dict[int, List[int]] = {}
    for index in range(len(units)):
        components.setdefault(find(index), []).append(index)

    groups = tuple(
        ChangeGroup(units=tuple(units[i] for i in members), first_index=members[0])
        for members in components.values()
    )

    diagnostics: Tuple[SegmentationAmbiguityWarning, ...] = ()
    if len(units) > 1 and not linked:
        diagnostics = (
            SegmentationAmbiguityWarning(
                f"No affinity found between {len(units)} changes; keeping one group per change"
            ),
        )
        logger.debug("Segmentation fell back to one group per change unit")
    logger.debug("Segmented %d change(s) into %d group(s)", len(units), len(groups))
    return Segmentation(groups=groups, diagnostics=diagnostics)
