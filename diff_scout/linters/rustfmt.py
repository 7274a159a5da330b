"""Formatting mismatches from ``cargo +nightly fmt -- --emit json``."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from diff_scout.linters.base import run_tool
from diff_scout.models import Finding

logger = logging.getLogger(__name__)

COMMAND_PARAMETERS = ("+nightly", "fmt", "--", "--emit", "json")


@dataclass(frozen=True, slots=True)
class RustfmtLinter:
    """Report every place rustfmt would rewrite."""

    name: str = "rustfmt"

    def lints(self, working_dir: Path) -> list[Finding]:
        logger.info("checking format for directory %s", working_dir)
        output = run_tool(["cargo", *COMMAND_PARAMETERS], working_dir)
        return parse_rustfmt_output(output)


def parse_rustfmt_output(output: str) -> list[Finding]:
    """Parse the JSON arrays rustfmt prints, one per formatted crate."""
    findings: list[Finding] = []
    for line in output.splitlines():
        if not line.startswith("["):
            continue
        try:
            files = json.loads(line)
        except json.JSONDecodeError:
            continue
        if not isinstance(files, list):
            continue
        for entry in files:
            findings.extend(_file_findings(entry))
    return findings


def _file_findings(entry: Any) -> list[Finding]:
    if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
        return []
    mismatches = entry.get("mismatches")
    if not isinstance(mismatches, list):
        return []

    path = entry["name"]
    findings: list[Finding] = []
    for mismatch in mismatches:
        if not isinstance(mismatch, dict):
            continue
        start = mismatch.get("original_begin_line")
        end = mismatch.get("original_end_line")
        if not isinstance(start, int) or not isinstance(end, int):
            continue
        try:
            findings.append(
                Finding(path=path, start=start, end=end, message=describe_mismatch(path, mismatch))
            )
        except ValueError:
            continue
    return findings


def describe_mismatch(path: str, mismatch: dict[str, Any]) -> str:
    start = mismatch.get("original_begin_line")
    end = mismatch.get("original_end_line")
    original = str(mismatch.get("original", ""))
    expected = str(mismatch.get("expected", ""))
    removed = "\n".join(f"-{line}" for line in original.splitlines())
    added = "\n".join(f"+{line}" for line in expected.splitlines())
    if start == end:
        location = f"Diff in {path} at line {start}:"
    else:
        location = f"Diff in {path} between lines {start} and {end}:"
    return "\n".join(part for part in (location, removed, added) if part) + "\n"
