"""Git subprocess helpers and the merge-base diff source."""

from __future__ import annotations

import logging
from pathlib import Path
from subprocess import CalledProcessError, run
from typing import Protocol

from diff_scout.diff_parser import parse_change_set
from diff_scout.errors import ConfigurationError, ExternalToolError
from diff_scout.events import EventSink, StageStarted
from diff_scout.models import ChangeSet

logger = logging.getLogger(__name__)

# stderr fragments git prints when a revision or repository cannot be resolved
_UNRESOLVED_MARKERS = (
    "not a git repository",
    "not a valid object name",
    "unknown revision",
    "bad revision",
    "ambiguous argument",
    "needed a single revision",
)


class GitError(ExternalToolError):
    """Raised when git command execution fails."""


class DiffSource(Protocol):
    """Capability that resolves merge bases and produces unified diffs."""

    def merge_base(self, head: str, branch: str) -> str:
        """Return the merge-base commit id of ``head`` and ``branch``."""

    def diff(self, base: str, head: str) -> str:
        """Return the text diff from ``base`` to ``head``."""


class GitDiffSource:
    """``DiffSource`` backed by the git command line."""

    def __init__(self, repo: Path) -> None:
        self.repo = repo

    def merge_base(self, head: str, branch: str) -> str:
        return merge_base(self.repo, head, branch)

    def diff(self, base: str, head: str) -> str:
        return get_diff_between(self.repo, base, head)


def merge_base(repo: Path, head: str, branch: str) -> str:
    """Return the most recent common ancestor of two revisions."""
    for revision in (head, branch):
        if revision.startswith("-"):
            raise ConfigurationError(f"Invalid revision name: {revision!r}")
    try:
        output = _run_git(repo, ["merge-base", head, branch]).strip()
    except GitError as exc:
        if _is_unresolved(exc.stderr):
            raise ConfigurationError(
                f"cannot resolve merge base of {head} and {branch}: {exc.stderr or exc}"
            ) from exc
        if not exc.stderr:
            # merge-base exits 1 silently when the histories are unrelated
            raise ConfigurationError(f"no merge base between {head} and {branch}") from exc
        raise
    if not output:
        raise ConfigurationError(f"no merge base between {head} and {branch}")
    return output


def get_diff_between(repo: Path, base: str, head: str) -> str:
    """Return diff between two revisions."""
    return _run_git(
        repo,
        ["-c", "core.quotePath=false", "diff", "--no-color", "--no-ext-diff", base, head],
    )


def extract_change_set(
    source: DiffSource,
    branch: str,
    *,
    head: str = "HEAD",
    sink: EventSink | None = None,
) -> tuple[str, ChangeSet]:
    """Diff ``head`` against its merge base with ``branch``.

    Returns the merge-base commit id and the parsed change set.
    """
    if sink is not None:
        sink.emit(StageStarted(stage="merge-base", detail=f"{head}...{branch}"))
    base = source.merge_base(head, branch)
    logger.debug("merge base of %s and %s is %s", head, branch, base)
    if sink is not None:
        sink.emit(StageStarted(stage="diff", detail=f"{base}..{head}"))
    diff_text = source.diff(base, head)
    change_set = parse_change_set(diff_text, sink=sink)
    logger.debug("diff touches %d files with added lines", len(change_set))
    return base, change_set


def _is_unresolved(stderr: str) -> bool:
    lowered = stderr.lower()
    return any(marker in lowered for marker in _UNRESOLVED_MARKERS)


def _run_git(repo: Path, args: list[str]) -> str:
    if not Path(repo).is_dir():
        raise ConfigurationError(f"not a git repository: {repo}")
    command = ["git", *args]
    logger.debug("running %s in %s", " ".join(command), repo)
    try:
        completed = run(
            command,
            cwd=repo,
            check=True,
            capture_output=True,
        )
    except CalledProcessError as exc:
        stderr = _decode(exc.stderr or b"", command).strip()
        raise GitError(
            stderr or f"git {' '.join(args)} failed", command=command, stderr=stderr
        ) from exc
    except FileNotFoundError as exc:
        raise GitError("git executable not found", command=command) from exc

    return _decode(completed.stdout, command)


def _decode(raw: bytes, command: list[str]) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise GitError(f"{' '.join(command)} produced non-UTF-8 output", command=command) from exc
