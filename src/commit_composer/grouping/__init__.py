"""
Grouping logic for commit messages.

This package provides the change model, the segmenter that splits a
change-set into independent groups, and the classifier that assigns a
Conventional Commit type to each group. See
:mod:`commit_composer.grouping.segmenter` and
:mod:`commit_composer.grouping.change_classifier` for details.
"""

from .change_classifier import classify_group  # noqa: F401
from .group_model import (  # noqa: F401
    ChangeGroup,
    ChangeKind,
    ChangeUnit,
    Classification,
    ClassificationOverride,
)
from .segmenter import Segmentation, segment  # noqa: F401
