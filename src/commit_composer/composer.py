"""
Compose Conventional Commit messages from a change-set.

The :class:`Composer` runs the pipeline

    segment -> classify -> summarize -> build -> render/parse self-check

and returns one message per change group, in group discovery order. It
never touches the repository: applying the messages is up to the
caller.

Summaries are requested concurrently on a bounded thread pool. A
summarizer that fails or times out only costs its own group, which is
reported as :class:`MissingDescription`; any other exception aborts the
run with :class:`CompositionFailed`, keeping the groups completed so far.
"""

from __future__ import annotations

import collections
import concurrent.futures
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from commit_composer.errors import (
    CollaboratorFailure,
    CollaboratorTimeout,
    ComposerInvariantViolation,
    CompositionFailed,
    GrammarError,
    MissingDescription,
    SegmentationAmbiguityWarning,
)
from commit_composer.grammar.model import BREAKING_CHANGE, CommitMessage, Footer
from commit_composer.grammar.parser import parse, render, validate
from commit_composer.grouping.change_classifier import classify_group
from commit_composer.grouping.group_model import ChangeGroup, ChangeUnit, ClassificationOverride
from commit_composer.grouping.segmenter import segment
from commit_composer.grouping.signals import DEFAULT_SCOPE_ROOTS
from commit_composer.llm.ollama_client import OllamaClient
from commit_composer.llm.summarizer import OllamaSummarizer, Summarizer, Summary, TemplateSummarizer


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


DEFAULT_MAX_WORKERS = 4
DEFAULT_SUMMARIZER_TIMEOUT = 60.0

OverrideProvider = Callable[[ChangeGroup], Optional[ClassificationOverride]]


@dataclass
class ProposedCommit:
    """Outcome for one change group.

    Exactly one of ``message`` and ``error`` is set.
    """

    group: ChangeGroup
    message: Optional[CommitMessage] = None
    error: Optional[MissingDescription] = None


@dataclass
class Composition:
    """Result of one composition run."""

    proposals: List[ProposedCommit] = field(default_factory=list)
    diagnostics: Tuple[SegmentationAmbiguityWarning, ...] = ()

    @property
    def failed(self) -> bool:
        return any(p.error is not None for p in self.proposals)

    @property
    def messages(self) -> List[CommitMessage]:
        return [p.message for p in self.proposals if p.message is not None]

    @property
    def errors(self) -> List[MissingDescription]:
        return [p.error for p in self.proposals if p.error is not None]


def _lines(text: str) -> List[str]:
    return [line.rstrip() for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n")]


def _paragraphs(texts: Iterable[str]) -> Tuple[str, ...]:
    """Normalize paragraphs: trailing whitespace dropped, blank lines split."""
    paragraphs: List[str] = []
    for text in texts:
        current: List[str] = []
        for line in _lines(text):
            if line.strip():
                current.append(line)
            elif current:
                paragraphs.append("\n".join(current))
                current = []
        if current:
            paragraphs.append("\n".join(current))
    return tuple(paragraphs)


class Composer:
    """Turn change units into grammar-valid commit messages.

    Parameters
    ----------
    summarizer : Summarizer, optional
        Source of description/body text. Defaults to a
        :class:`TemplateSummarizer` in ``language``.
    language : str
        Language for the default summarizer.
    split : bool
        When False all units are proposed as a single commit.
    max_workers : int
        Concurrency ceiling for summarizer calls.
    summarizer_timeout : float
        Seconds to wait for each summary.
    scope_roots : Sequence[str]
        Directories whose children are used as modules and scopes.
    overrides : callable, optional
        Returns a :class:`ClassificationOverride` for a group, or None.
    """

    def __init__(
        self,
        summarizer: Optional[Summarizer] = None,
        language: str = "en",
        split: bool = True,
        max_workers: int = DEFAULT_MAX_WORKERS,
        summarizer_timeout: float = DEFAULT_SUMMARIZER_TIMEOUT,
        scope_roots: Sequence[str] = DEFAULT_SCOPE_ROOTS,
        overrides: Optional[OverrideProvider] = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.summarizer = summarizer or TemplateSummarizer(language)
        self.split = split
        self.max_workers = max_workers
        self.summarizer_timeout = summarizer_timeout
        self.scope_roots = tuple(scope_roots)
        self.overrides = overrides

    @classmethod
    def from_config(cls, config: Dict[str, Any], use_llm: bool = True, **kwargs: Any) -> "Composer":
        """Build a composer from a loaded configuration dictionary."""
        timeout = float(config.get("summarizer_timeout", DEFAULT_SUMMARIZER_TIMEOUT))
        language = config.get("language", "en")
        summarizer: Optional[Summarizer] = None
        if use_llm and config.get("ollama"):
            client = OllamaClient.from_config(config["ollama"])
            summarizer = OllamaSummarizer(client, language=language, timeout=timeout)
        options: Dict[str, Any] = {
            "summarizer": summarizer,
            "language": language,
            "split": config.get("split", True),
            "max_workers": config.get("max_workers", DEFAULT_MAX_WORKERS),
            "summarizer_timeout": timeout,
            "scope_roots": config.get("scope_roots", DEFAULT_SCOPE_ROOTS),
        }
        options.update(kwargs)
        return cls(**options)

    # ------------------------------------------------------------------
    # Pipeline steps
    # ------------------------------------------------------------------
    def _groups(self, units: List[ChangeUnit]) -> Tuple[List[ChangeGroup], Tuple[SegmentationAmbiguityWarning, ...]]:
        if not units:
            return [], ()
        if not self.split:
            return [ChangeGroup(units=tuple(units), first_index=0)], ()
        segmentation = segment(units, self.scope_roots)
        return list(segmentation.groups), segmentation.diagnostics

    def _classify(self, group: ChangeGroup) -> None:
        override = self.overrides(group) if self.overrides else None
        group.classification = classify_group(group, self.scope_roots, override)

    def _build(self, group: ChangeGroup, summary: Summary) -> CommitMessage:
        """Shape a summary into a message carrying the computed classification.

        Raises
        ------
        CollaboratorFailure
            If the summary cannot be expressed in the grammar.
        """
        classification = group.classification
        if classification is None:
            raise ComposerInvariantViolation(f"group {group.files} was not classified")
        footers = list(summary.footers)
        if classification.breaking and summary.breaking_note:
            note = "\n".join(line for line in _lines(summary.breaking_note) if line.strip())
            if note.strip():
                footers.append(Footer(BREAKING_CHANGE, note.strip()))
        message = CommitMessage.build(
            type=classification.type,
            scope=classification.scope,
            breaking=classification.breaking,
            description=" ".join(summary.description.split()),
            body=_paragraphs(summary.body),
            footers=footers,
        )
        try:
            validate(message)
        except GrammarError as exc:
            raise CollaboratorFailure(f"summary does not fit the commit grammar: {exc}") from exc
        return message

    @staticmethod
    def _self_check(message: CommitMessage) -> None:
        text = render(message)
        try:
            reparsed = parse(text)
        except GrammarError as exc:
            raise ComposerInvariantViolation(f"rendered message does not parse: {exc}") from exc
        if reparsed != message:
            raise ComposerInvariantViolation(
                f"render/parse round trip changed the message: {message!r} != {reparsed!r}"
            )

    def _propose(self, index: int, group: ChangeGroup, outcome: Any) -> ProposedCommit:
        if isinstance(outcome, Summary):
            try:
                message = self._build(group, outcome)
            except CollaboratorFailure as exc:
                outcome = exc
            else:
                self._self_check(message)
                return ProposedCommit(group=group, message=message)
        logger.warning("No description for commit group %d (%s): %s", index + 1, group.files, outcome)
        return ProposedCommit(group=group, error=MissingDescription(index, outcome))

    def _summaries(self, groups: List[ChangeGroup]) -> List[Any]:
        """Summarize every group, returning a Summary or CollaboratorFailure per group.

        At most ``max_workers`` calls are in flight. Each call's timeout
        starts when it is dispatched; a call that times out is abandoned
        and no longer counts against the ceiling.
        """
        outcomes: List[Any] = [None] * len(groups)
        queued = collections.deque(range(len(groups)))
        running: Dict[concurrent.futures.Future, Tuple[int, float]] = {}
        # One thread per group at most; the dispatch loop bounds concurrency.
        executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=len(groups),
            thread_name_prefix="summarizer",
        )
        try:
            while queued or running:
                while queued and len(running) < self.max_workers:
                    index = queued.popleft()
                    future = executor.submit(self.summarizer.summarize, groups[index], groups[index].classification)
                    running[future] = (index, time.monotonic())

                first_deadline = min(started for _, started in running.values()) + self.summarizer_timeout
                done, _ = concurrent.futures.wait(
                    running,
                    timeout=max(0.0, first_deadline - time.monotonic()),
                    return_when=concurrent.futures.FIRST_COMPLETED,
                )
                for future in sorted(done, key=lambda f: running[f][0]):
                    index, _ = running.pop(future)
                    try:
                        outcomes[index] = future.result()
                    except CollaboratorFailure as exc:
                        outcomes[index] = exc
                    except Exception as exc:
                        raise self._abort(groups, outcomes, running, exc) from exc

                now = time.monotonic()
                for future, (index, started) in list(running.items()):
                    if now - started >= self.summarizer_timeout:
                        del running[future]
                        future.cancel()
                        logger.debug("Abandoning summary of commit group %d after timeout", index + 1)
                        outcomes[index] = CollaboratorTimeout(
                            f"summarizer did not answer within {self.summarizer_timeout:g}s"
                        )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return outcomes

    def _abort(
        self,
        groups: List[ChangeGroup],
        outcomes: List[Any],
        running: Dict[concurrent.futures.Future, Tuple[int, float]],
        cause: BaseException,
    ) -> CompositionFailed:
        """Build the hard failure, keeping every group that already finished."""
        for future, (index, _) in running.items():
            if future.done() and not future.cancelled() and future.exception() is None:
                outcomes[index] = future.result()
            else:
                future.cancel()
        completed = [
            self._propose(i, groups[i], outcomes[i])
            for i in range(len(groups))
            if outcomes[i] is not None
        ]
        return CompositionFailed(cause, Composition(proposals=completed))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def run(self, units: Iterable[ChangeUnit]) -> Composition:
        """Compose messages, reporting per-group failures instead of raising.

        Raises
        ------
        CompositionFailed
            If a summarizer raised something other than a collaborator error.
        ComposerInvariantViolation
            If a composed message does not survive render -> parse.
        """
        units = list(units)
        groups, diagnostics = self._groups(units)
        for group in groups:
            self._classify(group)
        if not groups:
            return Composition(diagnostics=diagnostics)
        outcomes = self._summaries(groups)
        proposals = [self._propose(i, group, outcomes[i]) for i, group in enumerate(groups)]
        logger.debug("Composed %d commit message(s) from %d change(s)", len(proposals), len(units))
        return Composition(proposals=proposals, diagnostics=diagnostics)

    def compose(self, units: Iterable[ChangeUnit]) -> List[CommitMessage]:
        """Return one commit message per change group, in discovery order.

        Raises
        ------
        MissingDescription
            For the first group whose summary failed. Its ``composition``
            attribute holds the results of every group.
        """
        composition = self.run(units)
        if composition.failed:
            error = composition.errors[0]
            error.composition = composition
            raise error
        return composition.messages
