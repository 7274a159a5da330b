"""Output rendering."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import click

from diff_scout import __version__
from diff_scout.events import Event
from diff_scout.models import ChangeSet
from diff_scout.scout import ScoutResult


def render_human(result: ScoutResult) -> str:
    """Render kept findings followed by a colorized verdict."""
    lines: list[str] = []
    for finding in result.kept:
        lines.extend(finding.message.rstrip("\n").split("\n"))

    if result.is_clean:
        lines.append(
            click.style(
                f"No warnings raised by {result.linter} in your diff, you're good to go!",
                fg="green",
                bold=True,
            )
        )
    else:
        noun = "warning" if len(result.kept) == 1 else "warnings"
        lines.append(
            click.style(f"{result.linter} found {len(result.kept)} {noun}", fg="red", bold=True)
        )
    return "\n".join(lines)


def render_change_set(change_set: ChangeSet) -> str:
    """Render changed lines per file, collapsing consecutive runs."""
    if not change_set:
        return "No added or modified lines."
    lines = [click.style("Changed lines:", bold=True)]
    for path, numbers in change_set.to_dict().items():
        lines.append(f"- {path}: {_format_ranges(numbers)}")
    return "\n".join(lines)


def render_json(result: ScoutResult, *, trace: Sequence[Event] | None = None) -> str:
    """Render stable JSON output for CI and automation."""
    return json.dumps(build_json_payload(result, trace=trace), sort_keys=True)


def build_json_payload(
    result: ScoutResult, *, trace: Sequence[Event] | None = None
) -> dict[str, Any]:
    """Build stable JSON payload for CI and automation."""
    payload: dict[str, Any] = {
        "findings": [finding.to_dict() for finding in result.kept],
        "changed_files": result.change_set.to_dict(),
        "meta": {
            "generated_at": datetime.now(tz=UTC)
            .replace(microsecond=0)
            .isoformat()
            .replace("+00:00", "Z"),
            "branch": result.branch,
            "merge_base": result.merge_base,
            "linter": result.linter,
            "total_findings": len(result.findings),
            "version": __version__,
        },
    }
    if trace is not None:
        payload["trace"] = [
            {"event": type(event).__name__, **event.to_dict()} for event in trace
        ]
    return payload


def _format_ranges(numbers: list[int]) -> str:
    runs: list[str] = []
    start = previous = numbers[0]
    for number in numbers[1:]:
        if number == previous + 1:
            previous = number
            continue
        runs.append(str(start) if start == previous else f"{start}-{previous}")
        start = previous = number
    runs.append(str(start) if start == previous else f"{start}-{previous}")
    return ", ".join(runs)
