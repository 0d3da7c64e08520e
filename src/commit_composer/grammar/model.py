"""
Data model for Conventional Commit messages.

:class:`CommitMessage` is the parsed (or to-be-rendered) form of a
message. Parsing and rendering live in
:mod:`commit_composer.grammar.parser`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple


BREAKING_CHANGE = "BREAKING CHANGE"
BREAKING_CHANGE_ALIAS = "BREAKING-CHANGE"
BREAKING_TOKENS = (BREAKING_CHANGE, BREAKING_CHANGE_ALIAS)


@dataclass(frozen=True)
class Footer:
    """A single ``token: value`` or ``token #value`` trailer.

    Attributes
    ----------
    token : str
        The footer token, e.g. ``Refs`` or ``BREAKING CHANGE``.
    value : str
        The footer value. May span several lines.
    separator : str
        Either ``": "`` or ``" #"``.
    """

    token: str
    value: str
    separator: str = ": "

    @property
    def is_breaking(self) -> bool:
        return self.token in BREAKING_TOKENS

    def render(self) -> str:
        return f"{self.token}{self.separator}{self.value}"


@dataclass(frozen=True)
class CommitMessage:
    """A Conventional Commit message.

    Attributes
    ----------
    type : str
        Commit type. Stored lowercase.
    description : str
        Single line summary following the header colon.
    scope : Optional[str]
        Optional scope written in parentheses after the type.
    breaking : bool
        True if the commit introduces a breaking change.
    breaking_marker : bool
        True if the header carries ``!`` before the colon.
    body : Tuple[str, ...]
        Body paragraphs, each one or more non-blank lines.
    footers : Tuple[Footer, ...]
        Ordered trailers.
    """

    type: str
    description: str
    scope: Optional[str] = None
    breaking: bool = False
    breaking_marker: bool = False
    body: Tuple[str, ...] = field(default_factory=tuple)
    footers: Tuple[Footer, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", self.type.lower())
        object.__setattr__(self, "body", tuple(self.body))
        object.__setattr__(self, "footers", tuple(self.footers))

    @classmethod
    def build(
        cls,
        type: str,
        description: str,
        scope: Optional[str] = None,
        breaking: bool = False,
        body: Iterable[str] = (),
        footers: Iterable[Footer] = (),
    ) -> "CommitMessage":
        """Create a message whose breaking signals agree with ``breaking``.

        A breaking message always gets the ``!`` marker so that the header
        alone tells readers about the incompatibility.
        """
        footers = tuple(footers)
        return cls(
            type=type,
            description=description,
            scope=scope or None,
            breaking=breaking or any(f.is_breaking for f in footers),
            breaking_marker=breaking,
            body=tuple(body),
            footers=footers,
        )

    @property
    def header(self) -> str:
        scope = f"({self.scope})" if self.scope else ""
        marker = "!" if self.breaking_marker else ""
        return f"{self.type}{scope}{marker}: {self.description}"

    @property
    def has_breaking_footer(self) -> bool:
        return any(f.is_breaking for f in self.footers)

    def footer_values(self, token: str) -> Tuple[str, ...]:
        """Return the values of all footers whose token equals ``token``."""
        return tuple(f.value for f in self.footers if f.token == token)
