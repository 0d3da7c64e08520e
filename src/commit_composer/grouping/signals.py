"""
Path and content signals shared by the segmenter and the classifier.

All helpers are pure functions over :class:`ChangeUnit` so they can be
unit tested without a repository. Binary units never yield content
signals.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from commit_composer.grouping.group_model import ChangeUnit


DEFAULT_SCOPE_ROOTS: Tuple[str, ...] = ("src", "lib", "packages", "apps", "tests", "test", "docs")

DOC_EXTENSIONS = {".md", ".rst", ".txt", ".adoc"}
DOC_NAMES = {"readme", "changelog", "contributing", "authors", "notice", "license", "copying"}
DOC_DIRS = {"docs", "doc", "documentation"}
# .txt files that are build inputs rather than prose.
NON_DOC_PREFIXES = ("requirements", "cmakelists", "constraints")

TEST_DIRS = {"tests", "test", "__tests__", "spec", "specs"}
_TEST_NAME = re.compile(
    r"^(?:test_.+|.+_test|.+[._-](?:test|spec)|.+Tests?)\.\w+$"
)
_TEST_AFFIXES = re.compile(r"^test_|(?:_test|[._-]test|[._-]spec|Tests?)$")

SOURCE_EXTENSIONS = {
    ".py", ".pyi", ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".go", ".rs", ".java",
    ".kt", ".kts", ".scala", ".c", ".h", ".cc", ".cpp", ".hpp", ".cs", ".rb", ".php",
    ".swift", ".m", ".lua", ".sh", ".ex", ".exs", ".erl", ".hs", ".dart", ".vue",
}

# Definitions recognised in changed lines or hunk header context.
_DEFINITION = re.compile(
    r"^\s*(?:export\s+)?(?:default\s+)?(?:pub(?:\([^)]*\))?\s+)?(?:public\s+|protected\s+)?"
    r"(?:abstract\s+)?(?:static\s+)?(?:async\s+)?"
    r"(?P<keyword>def|class|function|fn|func|interface|struct|enum|trait|type)\s+"
    r"(?:\([^)]*\)\s*)?\*?(?P<name>[A-Za-z_$][\w$]*)"
)
_HUNK_HEADER = re.compile(r"^@@ [^@]* @@\s?(?P<context>.*)$")
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]{2,}")
_COMMENT_PREFIXES = ("#", "//", "/*", "*", "--", ";", "<!--", '"""', "'''")

_ISSUE_REF = re.compile(r"(?<![\w&])#\d+\b")
_TICKET_REF = re.compile(r"\b(?P<project>[A-Z][A-Z0-9]+)-\d+\b")
_NOT_TICKETS = {"UTF", "ISO", "SHA", "RFC", "MD", "UCS", "ES", "HTTP"}
_DEFECT = re.compile(
    r"\b(?:fix(?:e[ds])?|bug(?:s|fix)?|hotfix|regression|crash(?:es|ed)?|defect)\b"
    r"|\b(?:close[sd]?|resolve[sd]?)\s+#\d+",
    re.IGNORECASE,
)

# Names too common to tie two changes together.
_COMMON_NAMES = {
    "main", "init", "__init__", "setup", "teardown", "setUp", "tearDown", "run", "test",
    "get", "set", "new", "self", "this", "default", "index", "value", "data", "name",
    "type", "result", "config", "options", "args", "kwargs", "return", "import", "from",
    "true", "false", "True", "False", "None", "null", "undefined", "const", "class",
    "def", "function", "func", "await", "async", "yield", "string", "bool",
}


def _path(path: str) -> PurePosixPath:
    return PurePosixPath(path.replace("\\", "/"))


def is_test_path(path: str) -> bool:
    """Return True if ``path`` looks like a test file."""
    p = _path(path)
    if any(part in TEST_DIRS for part in p.parts[:-1]):
        return True
    return bool(_TEST_NAME.match(p.name))


def is_doc_path(path: str) -> bool:
    """Return True if ``path`` looks like documentation."""
    p = _path(path)
    lower_name = p.name.lower()
    if lower_name.startswith(NON_DOC_PREFIXES):
        return False
    if p.suffix.lower() in DOC_EXTENSIONS:
        return True
    if p.stem.lower() in DOC_NAMES:
        return True
    return any(part.lower() in DOC_DIRS for part in p.parts[:-1])


def is_source_path(path: str) -> bool:
    return _path(path).suffix.lower() in SOURCE_EXTENSIONS


def module_key(path: str, roots: Sequence[str] = DEFAULT_SCOPE_ROOTS) -> Optional[str]:
    """Return the module a path belongs to, or None.

    The module is the first directory below a configured root, or the
    top-level directory for paths outside every root. Files at the
    repository root or directly inside a root have no module.
    """
    parts = _path(path).parts
    directories = parts[:-1]
    if not directories:
        return None
    if directories[0] in roots:
        return directories[1] if len(directories) > 1 else None
    return directories[0]


def tested_stem(path: str) -> Optional[str]:
    """Return the lowercase stem of the code a test file exercises."""
    if not is_test_path(path):
        return None
    stem = _path(path).stem
    target = _TEST_AFFIXES.sub("", stem)
    if not target or (target == stem and stem.lower().startswith("test")):
        return None
    return target.lower()


def _definition(line: str) -> Optional[Tuple[str, str]]:
    match = _DEFINITION.match(line)
    if not match:
        return None
    return match.group("name"), line.strip()


def definitions(lines: Iterable[str]) -> Dict[str, str]:
    """Map defined names to their (stripped) definition lines."""
    found: Dict[str, str] = {}
    for line in lines:
        definition = _definition(line)
        if definition and definition[0] not in found:
            found[definition[0]] = definition[1]
    return found


def context_symbols(unit: ChangeUnit) -> Set[str]:
    """Return names from hunk header context (``@@ ... @@ def foo():``)."""
    if not unit.has_content:
        return set()
    names: Set[str] = set()
    for line in unit.hunk.splitlines():
        match = _HUNK_HEADER.match(line)
        if match:
            definition = _definition(match.group("context"))
            if definition:
                names.add(definition[0])
    return names


def _meaningful(names: Iterable[str]) -> Set[str]:
    return {
        name
        for name in names
        if len(name) >= 3 and name not in _COMMON_NAMES and not name.startswith("__")
    }


def touched_symbols(unit: ChangeUnit) -> Set[str]:
    """Names defined in changed lines or enclosing the changed lines."""
    changed = unit.added_lines() + unit.removed_lines()
    return _meaningful(set(definitions(changed)) | context_symbols(unit))


def referenced_identifiers(unit: ChangeUnit) -> Set[str]:
    """Identifiers appearing anywhere in the changed lines."""
    names: Set[str] = set()
    for line in unit.added_lines() + unit.removed_lines():
        names.update(_IDENTIFIER.findall(line))
    return _meaningful(names)


def _is_comment(line: str) -> bool:
    return line.lstrip().startswith(_COMMENT_PREFIXES)


def intent_lines(unit: ChangeUnit) -> List[str]:
    """Changed lines that carry prose: comments, or any line of a document."""
    changed = unit.added_lines() + unit.removed_lines()
    if is_doc_path(unit.path):
        return changed
    return [line for line in changed if _is_comment(line)]


def ticket_refs(unit: ChangeUnit) -> Set[str]:
    """Issue/ticket references mentioned by the change."""
    refs = {ref.strip() for ref in unit.refs if ref.strip()}
    for line in intent_lines(unit):
        refs.update(_ISSUE_REF.findall(line))
        for match in _TICKET_REF.finditer(line):
            if match.group("project") not in _NOT_TICKETS:
                refs.add(match.group(0))
    return refs


def has_defect_reference(unit: ChangeUnit) -> bool:
    """True if the change is tied to a known defect."""
    if unit.refs:
        return True
    return any(_DEFECT.search(line) for line in intent_lines(unit))


def is_whitespace_only(unit: ChangeUnit) -> bool:
    """True if every changed line differs only in whitespace."""
    minus = unit.removed_lines()
    plus = unit.added_lines()
    if not minus and not plus:
        return False
    norm_minus = "".join(re.sub(r"\s", "", line) for line in minus)
    norm_plus = "".join(re.sub(r"\s", "", line) for line in plus)
    return norm_minus == norm_plus
