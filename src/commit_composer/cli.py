"""
Command line interface for commit_composer.

``commit-composer lint`` checks a commit message (suitable for a
``commit-msg`` hook) and ``commit-composer propose`` prints Conventional
Commit messages for the pending changes of the current Git repository.
Nothing is ever staged or committed by this tool.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from commit_composer import __version__
from commit_composer.composer import Composer
from commit_composer.config.loader import ConfigError, load_config
from commit_composer.errors import CompositionFailed, GrammarError
from commit_composer.grammar.parser import parse, render
from commit_composer.vcs.git_client import GitClient, GitError

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_INVALID_USAGE = 2
EXIT_NO_REPO = 3
EXIT_NO_CHANGES = 4
EXIT_CONFIG_ERROR = 5
EXIT_VCS_FAILURE = 6
EXIT_SUMMARIZER_FAILURE = 7
EXIT_INVALID_MESSAGE = 9


def print_info(message: str, indent: int = 0) -> None:
    prefix = "  " * indent
    click.echo(f"{prefix}ℹ {message}", err=True)


def print_success(message: str, indent: int = 0) -> None:
    prefix = "  " * indent
    click.echo(f"{prefix}✓ {message}", err=True)


def print_warning(message: str, indent: int = 0) -> None:
    prefix = "  " * indent
    click.echo(f"{prefix}⚠ {message}", err=True)


def print_error(message: str, indent: int = 0) -> None:
    prefix = "  " * indent
    click.echo(f"{prefix}✗ {message}", err=True)


def _configure_logging(verbose: bool) -> None:
    # force=True so handlers are reconfigured on repeated invocations (tests).
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        force=True,
    )


@click.group()
@click.version_option(version=__version__, prog_name="commit-composer")
def main() -> None:
    """Compose Conventional Commit messages for your changes."""


@main.command()
@click.argument("message_file", type=click.File("r", encoding="utf-8"), default="-")
def lint(message_file) -> None:
    """Check that MESSAGE_FILE (default: stdin) is a valid Conventional Commit."""
    text = message_file.read()
    # Git passes the raw COMMIT_EDITMSG, which may hold comment lines.
    text = "\n".join(line for line in text.splitlines() if not line.startswith("#"))
    try:
        message = parse(text)
    except GrammarError as exc:
        click.echo(f"{exc.line}:{exc.column}: {exc.kind}: {exc.message}", err=True)
        raise click.exceptions.Exit(EXIT_INVALID_MESSAGE)
    print_success(f"{message.header}")
    raise click.exceptions.Exit(EXIT_SUCCESS)


@main.command()
@click.option("--all", "all_changes", is_flag=True, help="Include unstaged changes to tracked files.")
@click.option("--single", is_flag=True, help="Propose one commit for all changes.")
@click.option("--language", help="Language of descriptions, e.g. 'German' or 'fr'.")
@click.option("--no-llm", is_flag=True, help="Use templates even if an Ollama server is configured.")
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
def propose(all_changes: bool, single: bool, language: Optional[str], no_llm: bool, verbose: bool) -> None:
    """Print proposed commit messages for the pending changes."""
    _configure_logging(verbose)

    repo_root = GitClient.find_repo_root(Path.cwd())
    if repo_root is None:
        print_error("Current directory is not inside a Git repository.")
        raise click.exceptions.Exit(EXIT_NO_REPO)
    logger.debug("Repository root: %s", repo_root)

    try:
        config = load_config(repo_root)
    except ConfigError as exc:
        print_error(f"Configuration error: {exc}")
        raise click.exceptions.Exit(EXIT_CONFIG_ERROR)
    if language:
        config["language"] = language
    if single:
        config["split"] = False

    client = GitClient(repo_root)
    try:
        units = client.get_change_units(staged=not all_changes)
    except GitError as exc:
        print_error(f"VCS error: {exc}")
        raise click.exceptions.Exit(EXIT_VCS_FAILURE)
    if not units:
        print_warning("No changes detected." if all_changes else "No staged changes detected.")
        raise click.exceptions.Exit(EXIT_NO_CHANGES)
    print_info(f"Found {len(units)} changed file{'s' if len(units) != 1 else ''}")

    composer = Composer.from_config(config, use_llm=not no_llm)
    try:
        composition = composer.run(units)
    except CompositionFailed as exc:
        print_error(f"Summarizer failed: {exc.cause}")
        raise click.exceptions.Exit(EXIT_SUMMARIZER_FAILURE)
    except Exception as exc:
        logging.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        raise click.exceptions.Exit(EXIT_GENERIC_ERROR)

    for diagnostic in composition.diagnostics:
        print_info(str(diagnostic))

    total = len(composition.proposals)
    for index, proposal in enumerate(composition.proposals, start=1):
        click.echo(f"\n# Commit {index}/{total}: {', '.join(proposal.group.files)}", err=True)
        if proposal.message is not None:
            click.echo(render(proposal.message))
        else:
            print_error(str(proposal.error))

    if composition.failed:
        raise click.exceptions.Exit(EXIT_SUMMARIZER_FAILURE)
    raise click.exceptions.Exit(EXIT_SUCCESS)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
