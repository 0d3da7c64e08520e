"""
Text summarizers that describe a change group in a human language.

A summarizer only supplies prose: the description line, optional body
paragraphs, optional trailers and a note explaining a breaking change.
The commit type, scope and breaking flag always come from the
classifier, and the composer enforces the grammar.

Two implementations are provided:

* :class:`TemplateSummarizer` builds deterministic messages from
  localized templates and is used when no language model is configured.
* :class:`OllamaSummarizer` asks an Ollama model for the text.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from textwrap import dedent
from typing import Dict, List, Optional, Tuple

from commit_composer.errors import CollaboratorFailure, GrammarError
from commit_composer.grammar.model import BREAKING_TOKENS, Footer
from commit_composer.grammar.parser import FOOTER_START, parse
from commit_composer.grouping.group_model import ChangeGroup, Classification
from commit_composer.llm.ollama_client import OllamaClient


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


@dataclass(frozen=True)
class Summary:
    """Prose for one commit message.

    Attributes
    ----------
    description : str
        Single line summary (72 display characters recommended).
    body : Tuple[str, ...]
        Body paragraphs.
    footers : Tuple[Footer, ...]
        Trailers such as ``Refs: #12``. Never contains breaking footers.
    breaking_note : Optional[str]
        Explanation of an incompatible change, used for the
        ``BREAKING CHANGE`` footer.
    """

    description: str
    body: Tuple[str, ...] = ()
    footers: Tuple[Footer, ...] = field(default_factory=tuple)
    breaking_note: Optional[str] = None

    @classmethod
    def from_text(cls, text: str) -> "Summary":
        """Split free text into description, paragraphs and trailers.

        The first non-empty line is the description. A final paragraph
        made of trailers becomes ``footers``; a ``BREAKING CHANGE``
        trailer becomes ``breaking_note``.
        """
        lines = [line.rstrip() for line in text.replace("\r\n", "\n").split("\n")]
        while lines and not lines[0].strip():
            lines.pop(0)
        if not lines:
            return cls(description="")
        description = lines[0].strip()

        paragraphs: List[str] = []
        current: List[str] = []
        for line in lines[1:]:
            if line.strip():
                current.append(line)
            elif current:
                paragraphs.append("\n".join(current))
                current = []
        if current:
            paragraphs.append("\n".join(current))

        footers: Tuple[Footer, ...] = ()
        breaking_note: Optional[str] = None
        if paragraphs and FOOTER_START.match(paragraphs[-1].split("\n")[0]):
            try:
                trailers = parse("chore: trailers\n\n" + paragraphs[-1]).footers
            except GrammarError:
                trailers = ()
            if trailers:
                paragraphs.pop()
                notes = [f.value for f in trailers if f.token in BREAKING_TOKENS]
                breaking_note = "\n".join(notes) or None
                footers = tuple(f for f in trailers if f.token not in BREAKING_TOKENS)
        return cls(
            description=description,
            body=tuple(paragraphs),
            footers=footers,
            breaking_note=breaking_note,
        )


class Summarizer(ABC):
    """Abstract interface for text summarizers."""

    @abstractmethod
    def summarize(self, group: ChangeGroup, classification: Classification) -> Summary:
        """Describe ``group`` in the configured language.

        Raises
        ------
        CollaboratorFailure
            If no summary can be produced. ``CollaboratorTimeout`` is
            raised when the backend did not answer in time.
        """


# ---------------------------------------------------------------------------
# Deterministic templates
# ---------------------------------------------------------------------------

_TEMPLATES: Dict[str, Dict[str, str]] = {
    "en": {
        "feat": "add {subject}",
        "fix": "fix {subject}",
        "docs": "update documentation in {subject}",
        "test": "update tests in {subject}",
        "style": "reformat {subject}",
        "chore": "update {subject}",
        "files": "{count} files",
        "in": "{what} in {scope}",
        "heading": "Affected files:",
        "breaking": "The public interface of {subject} changed incompatibly.",
    },
    "de": {
        "feat": "{subject} hinzufügen",
        "fix": "{subject} korrigieren",
        "docs": "Dokumentation in {subject} aktualisieren",
        "test": "Tests in {subject} aktualisieren",
        "style": "{subject} neu formatieren",
        "chore": "{subject} aktualisieren",
        "files": "{count} Dateien",
        "in": "{what} in {scope}",
        "heading": "Betroffene Dateien:",
        "breaking": "Die öffentliche Schnittstelle von {subject} wurde inkompatibel geändert.",
    },
    "es": {
        "feat": "añadir {subject}",
        "fix": "corregir {subject}",
        "docs": "actualizar la documentación en {subject}",
        "test": "actualizar las pruebas en {subject}",
        "style": "reformatear {subject}",
        "chore": "actualizar {subject}",
        "files": "{count} archivos",
        "in": "{what} en {scope}",
        "heading": "Archivos afectados:",
        "breaking": "La interfaz pública de {subject} cambió de forma incompatible.",
    },
    "fr": {
        "feat": "ajouter {subject}",
        "fix": "corriger {subject}",
        "docs": "mettre à jour la documentation de {subject}",
        "test": "mettre à jour les tests de {subject}",
        "style": "reformater {subject}",
        "chore": "mettre à jour {subject}",
        "files": "{count} fichiers",
        "in": "{what} dans {scope}",
        "heading": "Fichiers concernés :",
        "breaking": "L'interface publique de {subject} a changé de manière incompatible.",
    },
}

_LANGUAGE_NAMES = {
    "english": "en",
    "german": "de",
    "deutsch": "de",
    "spanish": "es",
    "español": "es",
    "espanol": "es",
    "french": "fr",
    "français": "fr",
    "francais": "fr",
}


def language_code(language: str) -> Optional[str]:
    """Map ``"German"``, ``"de"`` or ``"de_DE"`` to a template key.

    Returns None for languages without templates.
    """
    lowered = language.strip().lower()
    if lowered in _LANGUAGE_NAMES:
        return _LANGUAGE_NAMES[lowered]
    code = re.split(r"[-_]", lowered)[0]
    return code if code in _TEMPLATES else None


class TemplateSummarizer(Summarizer):
    """Describe groups with fixed, localized sentences."""

    def __init__(self, language: str = "en") -> None:
        code = language_code(language)
        if code is None:
            logger.warning("No templates for language '%s'; using English", language)
            code = "en"
        self.language = code
        self.templates = _TEMPLATES[code]

    def _subject(self, group: ChangeGroup, classification: Classification) -> str:
        if len(group.units) == 1:
            return PurePosixPath(group.units[0].path).name
        what = self.templates["files"].format(count=len(group.units))
        if classification.scope:
            return self.templates["in"].format(what=what, scope=classification.scope)
        return what

    def summarize(self, group: ChangeGroup, classification: Classification) -> Summary:
        subject = self._subject(group, classification)
        template = self.templates.get(classification.type, self.templates["chore"])
        files = "\n".join(f"- {path}" for path in group.files)
        note = None
        if classification.breaking:
            note = self.templates["breaking"].format(subject=subject)
        return Summary(
            description=template.format(subject=subject),
            body=(f"{self.templates['heading']}\n{files}",),
            breaking_note=note,
        )


# ---------------------------------------------------------------------------
# Language model backed summaries
# ---------------------------------------------------------------------------

_THINKING_MARKERS = (
    "let me",
    "i will",
    "i'll",
    "based on",
    "looking at",
    "analyzing",
    "here's the",
    "here is the",
    "i see that",
    "i can see",
)
_TYPE_PREFIX = re.compile(r"^\s*\[?[a-zA-Z]+\]?(?:\([^)]*\))?!?:\s+")
_FENCE = re.compile(r"^```[\w-]*\s*$", re.MULTILINE)


class OllamaSummarizer(Summarizer):
    """Generate commit prose with an Ollama model.

    Parameters
    ----------
    client : OllamaClient
        Configured client.
    language : str
        Human language for the description and body, e.g. ``"German"``.
    timeout : float, optional
        Per-call timeout passed to the client.
    max_diff_lines : int
        Number of changed lines per file included in the prompt.
    """

    def __init__(
        self,
        client: OllamaClient,
        language: str = "English",
        timeout: Optional[float] = None,
        max_diff_lines: int = 20,
    ) -> None:
        self.client = client
        self.language = language
        self.timeout = timeout
        self.max_diff_lines = max_diff_lines

    def _build_prompt(self, group: ChangeGroup) -> str:
        diff_parts = []
        for unit in group.units:
            if unit.binary:
                diff_parts.append(f"File: {unit.path} ({unit.kind.value}, binary)")
                continue
            lines = [f"+{line}" for line in unit.added_lines()]
            lines += [f"-{line}" for line in unit.removed_lines()]
            context = "\n".join(lines[: self.max_diff_lines]) if lines else "(no diff available)"
            diff_parts.append(f"File: {unit.path} ({unit.kind.value})\n{context}")
        return "CHANGES:\n" + "\n\n".join(diff_parts)

    def _instructions(self, classification: Classification) -> str:
        header = classification.type + (f"({classification.scope})" if classification.scope else "")
        if classification.breaking:
            breaking = "This change is BREAKING. End with a paragraph 'BREAKING CHANGE: <what callers must change>'."
        else:
            breaking = "Do not mention breaking changes."
        return dedent(
            f"""
            Write the text of a commit message for the changes you are given.
            The commit header prefix "{header}: " is added automatically; do NOT repeat it.

            Output ONLY the message text, in {self.language}:
            Line 1: short imperative description, at most 72 characters
            Line 2: (blank)
            Then 1-3 short paragraphs explaining what changed and why.
            {breaking}
            """
        ).strip()

    def _extract(self, raw: str) -> str:
        """Drop code fences, preambles and echoed type prefixes."""
        text = _FENCE.sub("", raw).strip()
        lines = text.splitlines()
        while lines and (
            not lines[0].strip()
            or any(marker in lines[0].strip().lower()[:40] for marker in _THINKING_MARKERS)
        ):
            lines.pop(0)
        if lines:
            lines[0] = _TYPE_PREFIX.sub("", lines[0]).strip().strip("\"'`")
        return "\n".join(lines)

    def summarize(self, group: ChangeGroup, classification: Classification) -> Summary:
        prompt = self._build_prompt(group)
        raw = self.client.chat(prompt, system=self._instructions(classification), timeout=self.timeout)
        summary = Summary.from_text(self._extract(raw))
        if not summary.description:
            raise CollaboratorFailure("summarizer returned an empty description")
        logger.debug("Summarized %s: %s", group.files, summary.description)
        return summary
