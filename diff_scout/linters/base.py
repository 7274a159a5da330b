"""Linter protocol, findings sources and the shared tool runner."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path
from subprocess import run
from typing import Protocol

from diff_scout.errors import ExternalToolError
from diff_scout.models import Finding

logger = logging.getLogger(__name__)


class Linter(Protocol):
    """A lint tool that reports findings for one project directory."""

    name: str

    def lints(self, working_dir: Path) -> list[Finding]:
        """Run the tool in ``working_dir`` and return one finding per span."""


class FindingsSource(Protocol):
    """Capability that yields the findings of a whole run."""

    name: str

    def findings(self) -> list[Finding]:
        """Return every finding, already decomposed to one span each."""


class LinterFindingsSource:
    """Run a linter at the repository root or once per workspace member."""

    def __init__(self, linter: Linter, repo: Path, members: Sequence[str] = ()) -> None:
        self.linter = linter
        self.repo = repo
        self.members = tuple(members)
        self.name = linter.name

    def findings(self) -> list[Finding]:
        if not self.members:
            return self.linter.lints(self.repo)
        collected: list[Finding] = []
        for member in self.members:
            working_dir = self.repo / member
            logger.info("running %s on workspace member %s", self.name, working_dir)
            collected.extend(self.linter.lints(working_dir))
        return collected


class StaticFindingsSource:
    """Findings supplied up front, e.g. from a saved report."""

    def __init__(self, findings: Sequence[Finding], name: str = "static") -> None:
        self._findings = list(findings)
        self.name = name

    def findings(self) -> list[Finding]:
        return list(self._findings)


def run_tool(command: Sequence[str], cwd: Path, env: dict[str, str] | None = None) -> str:
    """Run a tool once and return its stdout, raising on failure."""
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = os.environ.copy()
        merged_env.update(env)

    logger.debug("running %s in %s", " ".join(command), cwd)
    try:
        completed = run(list(command), cwd=cwd, capture_output=True, env=merged_env, check=False)
    except (FileNotFoundError, NotADirectoryError) as exc:
        raise ExternalToolError(
            f"cannot run {command[0]} in {cwd}: {exc}", command=list(command)
        ) from exc

    stdout = _decode(completed.stdout, command)
    if completed.returncode != 0:
        stderr = _decode(completed.stderr, command).strip()
        raise ExternalToolError(
            f"{' '.join(command)} exited with status {completed.returncode}",
            command=list(command),
            stderr=stderr,
        )
    return stdout


def _decode(raw: bytes, command: Sequence[str]) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ExternalToolError(
            f"{' '.join(command)} produced non-UTF-8 output", command=list(command)
        ) from exc
