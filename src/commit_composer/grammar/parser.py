"""
Parser, validator and renderer for Conventional Commit messages.

A message is line oriented::

    type(scope)!: description
    <blank>
    body paragraph(s)
    <blank>
    Token: value
    Token #value
    BREAKING CHANGE: value

Parsing is all-or-nothing: :func:`parse` either returns a complete
:class:`CommitMessage` or raises :class:`GrammarError` pointing at the
first offending line and column. :func:`render` produces the canonical
text and is the inverse of :func:`parse` for every model accepted by
:func:`validate`.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from commit_composer.errors import GrammarError, GrammarErrorKind
from commit_composer.grammar.model import BREAKING_TOKENS, CommitMessage, Footer


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# Footer start: "token: value" or "token #value". The only token allowed to
# contain whitespace is the literal "BREAKING CHANGE".
FOOTER_START: re.Pattern = re.compile(
    r"^(?P<token>BREAKING CHANGE|[^\s:#]+)(?P<separator>: | #)(?P<value>.*)$"
)

# Any spelling of the breaking change token, used to reject wrong case.
_BREAKING_LOOKALIKE: re.Pattern = re.compile(
    r"^(?P<token>breaking[ -]change)(?:: | #)", re.IGNORECASE
)

_TYPE_TERMINATORS = "(!:"
_SEPARATORS = (": ", " #")


def _header_error(column: int, message: str, line: int = 1) -> GrammarError:
    return GrammarError(GrammarErrorKind.MALFORMED_HEADER, line, column, message)


def _parse_header(text: str, line_no: int) -> Tuple[str, Optional[str], bool, str]:
    """Split a header line into ``(type, scope, marker, description)``."""
    n = len(text)
    pos = 0
    while pos < n and text[pos] not in _TYPE_TERMINATORS and not text[pos].isspace():
        pos += 1
    if pos == 0:
        raise _header_error(1, "expected a commit type at the start of the header", line_no)
    commit_type = text[:pos]

    scope: Optional[str] = None
    if pos < n and text[pos] == "(":
        start = pos + 1
        pos = start
        while pos < n and text[pos] != ")":
            if text[pos] == "(" or text[pos].isspace():
                raise _header_error(
                    pos + 1, "scope must not contain whitespace or parentheses", line_no
                )
            pos += 1
        if pos >= n:
            raise _header_error(n + 1, "unterminated scope, expected ')'", line_no)
        if pos == start:
            raise _header_error(pos + 1, "scope must not be empty", line_no)
        scope = text[start:pos]
        pos += 1

    marker = False
    if pos < n and text[pos] == "!":
        marker = True
        pos += 1

    if pos >= n or text[pos] != ":":
        raise _header_error(pos + 1, "expected ':' after the commit type", line_no)
    pos += 1
    if pos >= n:
        raise _header_error(pos + 1, "expected a description after ': '", line_no)
    if text[pos] != " ":
        raise _header_error(pos + 1, "expected exactly one space after ':'", line_no)
    pos += 1
    if pos >= n:
        raise _header_error(pos + 1, "description must not be empty", line_no)
    if text[pos].isspace():
        raise _header_error(
            pos + 1, "description must follow ':' after exactly one space", line_no
        )
    return commit_type, scope, marker, text[pos:]


def _split_paragraphs(lines: List[Tuple[int, str]]) -> List[List[Tuple[int, str]]]:
    """Group numbered lines into paragraphs separated by blank lines."""
    paragraphs: List[List[Tuple[int, str]]] = []
    current: List[Tuple[int, str]] = []
    for line_no, text in lines:
        if text:
            current.append((line_no, text))
        elif current:
            paragraphs.append(current)
            current = []
    if current:
        paragraphs.append(current)
    return paragraphs


def _starts_footer(text: str) -> bool:
    return bool(FOOTER_START.match(text) or _BREAKING_LOOKALIKE.match(text))


def _parse_footers(paragraph: List[Tuple[int, str]]) -> Tuple[Footer, ...]:
    """Parse the trailing footer block into :class:`Footer` instances."""
    footers: List[Footer] = []
    token = ""
    separator = ""
    value_lines: List[str] = []
    start_line = 0

    def flush() -> None:
        value = "\n".join(value_lines).strip()
        if not value:
            raise GrammarError(
                GrammarErrorKind.INVALID_FOOTER_VALUE,
                start_line,
                len(token) + len(separator) + 1,
                f"footer '{token}' has an empty value",
            )
        footers.append(Footer(token=token, value=value, separator=separator))

    for line_no, text in paragraph:
        lookalike = _BREAKING_LOOKALIKE.match(text)
        if lookalike and lookalike.group("token") not in BREAKING_TOKENS:
            raise GrammarError(
                GrammarErrorKind.INVALID_FOOTER_TOKEN,
                line_no,
                1,
                f"'{lookalike.group('token')}' must be written as 'BREAKING CHANGE'",
            )
        match = FOOTER_START.match(text)
        if match:
            if token:
                flush()
            token = match.group("token")
            separator = match.group("separator")
            value_lines = [match.group("value")]
            start_line = line_no
        else:
            value_lines.append(text)
    if token:
        flush()
    return tuple(footers)


def parse(text: str) -> CommitMessage:
    """Parse ``text`` into a :class:`CommitMessage`.

    Raises
    ------
    GrammarError
        If the text does not follow the Conventional Commit grammar.
    """
    raw_lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    lines = [(index + 1, line.rstrip()) for index, line in enumerate(raw_lines)]
    # Ignore surrounding blank lines.
    while lines and not lines[-1][1]:
        lines.pop()
    while lines and not lines[0][1]:
        lines.pop(0)
    if not lines:
        raise GrammarError(GrammarErrorKind.EMPTY_MESSAGE, 1, 1, "commit message is empty")

    header_line_no, header = lines[0]
    commit_type, scope, marker, description = _parse_header(header, header_line_no)

    body: Tuple[str, ...] = ()
    footers: Tuple[Footer, ...] = ()
    if len(lines) > 1:
        line_no, second = lines[1]
        if second:
            raise GrammarError(
                GrammarErrorKind.MISSING_BLANK_LINE_AFTER_HEADER,
                line_no,
                1,
                "the header must be followed by a blank line",
            )
        paragraphs = _split_paragraphs(lines[2:])
        if paragraphs and _starts_footer(paragraphs[-1][0][1]):
            footers = _parse_footers(paragraphs.pop())
        body = tuple("\n".join(text for _, text in paragraph) for paragraph in paragraphs)

    message = CommitMessage(
        type=commit_type,
        description=description,
        scope=scope,
        breaking=marker or any(f.is_breaking for f in footers),
        breaking_marker=marker,
        body=body,
        footers=footers,
    )
    logger.debug("Parsed commit header: %s", message.header)
    return message


def is_valid(text: str) -> bool:
    """Return True if ``text`` parses as a Conventional Commit message."""
    try:
        parse(text)
    except GrammarError:
        return False
    return True


def _check_footer(footer: Footer) -> None:
    token = footer.token
    lookalike = _BREAKING_LOOKALIKE.match(f"{token}: ")
    if lookalike and token not in BREAKING_TOKENS:
        raise GrammarError(
            GrammarErrorKind.INVALID_FOOTER_TOKEN,
            0,
            0,
            f"'{token}' must be written as 'BREAKING CHANGE'",
        )
    if token not in BREAKING_TOKENS and not re.fullmatch(r"[^\s:#]+", token):
        raise GrammarError(
            GrammarErrorKind.INVALID_FOOTER_TOKEN,
            0,
            0,
            f"footer token '{token}' must not contain whitespace, ':' or '#'",
        )
    if footer.separator not in _SEPARATORS:
        raise GrammarError(
            GrammarErrorKind.INVALID_FOOTER_TOKEN,
            0,
            0,
            f"footer '{token}' uses unsupported separator {footer.separator!r}",
        )
    if "\r" in footer.value:
        raise GrammarError(
            GrammarErrorKind.INVALID_FOOTER_VALUE,
            0,
            0,
            f"footer '{token}' value must separate lines with \\n only",
        )
    value_lines = footer.value.split("\n")
    if (
        not footer.value.strip()
        or footer.value != footer.value.strip()
        or any(not line.strip() or line != line.rstrip() for line in value_lines)
    ):
        raise GrammarError(
            GrammarErrorKind.INVALID_FOOTER_VALUE,
            0,
            0,
            f"footer '{token}' value must be non-empty, trimmed and free of blank lines",
        )
    if any(_starts_footer(line) for line in value_lines[1:]):
        raise GrammarError(
            GrammarErrorKind.INVALID_FOOTER_VALUE,
            0,
            0,
            f"a continuation line of footer '{token}' would start a new footer",
        )


def validate(message: CommitMessage) -> None:
    """Check that ``message`` is well formed and can be rendered losslessly.

    Raises
    ------
    GrammarError
        Describing the first violated constraint.
    """
    commit_type = message.type
    if not commit_type:
        raise _header_error(1, "commit type must not be empty")
    for index, char in enumerate(commit_type):
        if char in _TYPE_TERMINATORS or char.isspace():
            raise _header_error(index + 1, f"commit type contains invalid character {char!r}")

    column = len(commit_type) + 1
    if message.scope is not None:
        if not message.scope:
            raise _header_error(column + 1, "scope must not be empty")
        for index, char in enumerate(message.scope):
            if char in "()" or char.isspace():
                raise _header_error(
                    column + 1 + index, "scope must not contain whitespace or parentheses"
                )
        column += len(message.scope) + 2

    description = message.description
    if not description.strip():
        raise _header_error(column + 2, "description must not be empty")
    if "\n" in description or "\r" in description:
        raise _header_error(column + 2, "description must be a single line")
    if description != description.strip():
        raise _header_error(column + 2, "description must not start or end with whitespace")

    for paragraph in message.body:
        if "\r" in paragraph:
            raise GrammarError(
                GrammarErrorKind.INVALID_BODY, 0, 0, "body paragraphs must separate lines with \\n only"
            )
        paragraph_lines = paragraph.split("\n")
        if any(not line.strip() or line != line.rstrip() for line in paragraph_lines):
            raise GrammarError(
                GrammarErrorKind.INVALID_BODY,
                0,
                0,
                "body paragraphs must consist of non-blank lines without trailing whitespace",
            )
    if message.body and not message.footers and _starts_footer(message.body[-1].split("\n")[0]):
        raise GrammarError(
            GrammarErrorKind.INVALID_BODY,
            0,
            0,
            "the last body paragraph would be read as a footer block",
        )

    for footer in message.footers:
        _check_footer(footer)

    signalled = message.breaking_marker or message.has_breaking_footer
    if message.breaking and not signalled:
        raise GrammarError(
            GrammarErrorKind.BREAKING_CHANGE_INCONSISTENCY,
            1,
            0,
            "breaking change needs '!' in the header or a BREAKING CHANGE footer",
        )
    if signalled and not message.breaking:
        raise GrammarError(
            GrammarErrorKind.BREAKING_CHANGE_INCONSISTENCY,
            1,
            0,
            "message carries a breaking change signal but is not marked breaking",
        )


def render(message: CommitMessage) -> str:
    """Render ``message`` in canonical form.

    Raises
    ------
    GrammarError
        If the message is not valid; invalid models are never rendered.
    """
    validate(message)
    sections = [message.header]
    sections.extend(message.body)
    if message.footers:
        sections.append("\n".join(footer.render() for footer in message.footers))
    return "\n\n".join(sections)
