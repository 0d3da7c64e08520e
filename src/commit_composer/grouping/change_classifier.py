"""
Heuristics for classifying change groups into Conventional Commit types.

The classifier is a fixed rule table evaluated in priority order; the
first matching rule wins:

1. only test files                       -> ``test``
2. only documentation files              -> ``docs``
3. only whitespace changes               -> ``style``
4. public symbol removed or re-signed    -> breaking ``feat``/``fix``
5. new capability, no defect reference   -> ``feat``
6. existing code corrected or shrunk     -> ``fix``
7. anything else                         -> ``chore``

It is intentionally simple and deterministic so that it can be unit
tested without a language model. Judgement calls can be overridden by
passing a :class:`ClassificationOverride`.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional, Sequence

from commit_composer.grouping import signals
from commit_composer.grouping.group_model import (
    ChangeGroup,
    ChangeKind,
    ChangeUnit,
    Classification,
    ClassificationOverride,
)


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


_SCOPE_TOKEN = re.compile(r"[^\s()]+")
_CALLABLE = re.compile(r"\b(?:def|function|fn|func)\b")


def _is_public(name: str) -> bool:
    return not name.startswith("_")


def _parameters(signature: str) -> Optional[Sequence[str]]:
    start = signature.find("(")
    end = signature.rfind(")")
    if start == -1 or end < start:
        return None
    inner = signature[start + 1:end]
    return [p.strip() for p in inner.split(",") if p.strip()]


def _compatible(old: str, new: str) -> bool:
    """True if ``new`` only appends defaulted parameters to ``old``."""
    if re.sub(r"\s", "", old) == re.sub(r"\s", "", new):
        return True
    # Only callables have signatures; types are breaking only when removed.
    if not _CALLABLE.search(old):
        return True
    old_params = _parameters(old)
    new_params = _parameters(new)
    if old_params is None or new_params is None:
        return False
    if new_params[:len(old_params)] != list(old_params):
        return False
    return all("=" in param for param in new_params[len(old_params):])


def _code_units(group: ChangeGroup) -> Sequence[ChangeUnit]:
    return [
        unit
        for unit in group.units
        if not signals.is_test_path(unit.path) and not signals.is_doc_path(unit.path)
    ]


def _definitions(group: ChangeGroup, removed: bool) -> Dict[str, str]:
    found: Dict[str, str] = {}
    for unit in _code_units(group):
        lines = unit.removed_lines() if removed else unit.added_lines()
        for name, line in signals.definitions(lines).items():
            found.setdefault(name, line)
    return found


def breaks_public_contract(group: ChangeGroup) -> bool:
    """Detect removed, renamed or incompatibly re-signed public symbols."""
    removed = _definitions(group, removed=True)
    added = _definitions(group, removed=False)
    for name, old in removed.items():
        if not _is_public(name):
            continue
        new = added.get(name)
        if new is None:
            logger.debug("Public symbol '%s' was removed", name)
            return True
        if not _compatible(old, new):
            logger.debug("Public symbol '%s' changed signature", name)
            return True
    return False


def adds_capability(group: ChangeGroup) -> bool:
    """Detect net-new public symbols or new source files."""
    removed = _definitions(group, removed=True)
    added = _definitions(group, removed=False)
    if any(_is_public(name) and name not in removed for name in added):
        return True
    return any(
        unit.kind is ChangeKind.ADDED and signals.is_source_path(unit.path)
        for unit in _code_units(group)
    )


def derive_scope(group: ChangeGroup, roots: Sequence[str] = signals.DEFAULT_SCOPE_ROOTS) -> Optional[str]:
    """Return the module shared by every unit, or None if they disagree."""
    keys = {signals.module_key(unit.path, roots) for unit in group.units}
    if len(keys) != 1:
        return None
    key = keys.pop()
    if key is None or not _SCOPE_TOKEN.fullmatch(key):
        return None
    return key


def _classify_type(group: ChangeGroup) -> Classification:
    units = group.units
    if not units:
        return Classification(type="chore")
    if all(signals.is_test_path(unit.path) for unit in units):
        return Classification(type="test")
    if all(signals.is_doc_path(unit.path) for unit in units):
        return Classification(type="docs")
    if all(not unit.binary and signals.is_whitespace_only(unit) for unit in units):
        return Classification(type="style")

    has_defect = any(signals.has_defect_reference(unit) for unit in units)
    new_capability = adds_capability(group) and not has_defect
    if breaks_public_contract(group):
        return Classification(type="feat" if new_capability else "fix", breaking=True)
    if new_capability:
        return Classification(type="feat")
    modifies = any(unit.kind is not ChangeKind.ADDED for unit in units)
    if modifies and (has_defect or group.deletions > group.insertions):
        return Classification(type="fix")
    return Classification(type="chore")


def classify_group(
    group: ChangeGroup,
    roots: Sequence[str] = signals.DEFAULT_SCOPE_ROOTS,
    override: Optional[ClassificationOverride] = None,
) -> Classification:
    """Classify a change group into a Conventional Commit type.

    Parameters
    ----------
    group : ChangeGroup
        The group to classify.
    roots : Sequence[str]
        Directories whose immediate children are used as scopes.
    override : ClassificationOverride, optional
        Caller supplied values that replace the computed ones.

    Returns
    -------
    Classification
        ``(type, scope, breaking)`` for the group. Identical groups always
        yield identical classifications.
    """
    computed = _classify_type(group)
    classification = Classification(
        type=computed.type,
        scope=derive_scope(group, roots),
        breaking=computed.breaking,
    )
    if override is not None:
        classification = override.apply(classification)
    logger.debug(
        "Classified %s as %s (scope=%s, breaking=%s)",
        group.files,
        classification.type,
        classification.scope,
        classification.breaking,
    )
    return classification
