"""Clippy findings from ``cargo clippy --message-format json``."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from diff_scout.linters.base import run_tool
from diff_scout.models import Finding

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ClippyLinter:
    """Clippy with ``clippy::all`` and ``clippy::pedantic`` raised to warnings."""

    verbose: bool = False
    no_default_features: bool = False
    all_features: bool = False
    features: str | None = None
    preview: bool = False
    name: str = "clippy"

    def command_parameters(self) -> list[str]:
        if self.preview:
            params = [
                "+nightly",
                "clippy-preview",
                "-Z",
                "unstable-options",
                "--message-format",
                "json",
            ]
        else:
            params = ["clippy", "--message-format", "json"]
        if self.verbose:
            params.append("--verbose")
        if self.no_default_features:
            params.append("--no-default-features")
        if self.all_features:
            params.append("--all-features")
        if self.features:
            params.extend(["--features", self.features])
        params.extend(["--", "-W", "clippy::all", "-W", "clippy::pedantic"])
        return params

    def envs(self) -> dict[str, str]:
        return {"RUST_BACKTRACE": "full"} if self.verbose else {}

    def lints(self, working_dir: Path) -> list[Finding]:
        logger.info("getting clippy lints for directory %s", working_dir)
        output = run_tool(["cargo", *self.command_parameters()], working_dir, self.envs())
        if self.verbose:
            logger.debug("clippy output:\n%s", output)
        return parse_clippy_output(output)


def parse_clippy_output(output: str) -> list[Finding]:
    """Turn clippy's JSON message stream into one finding per span.

    Lines that are not JSON objects, messages without spans and spans with
    missing or invalid line numbers are skipped.
    """
    findings: list[Finding] = []
    for line in output.splitlines():
        if not line.startswith("{"):
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            continue
        message = record.get("message") if isinstance(record, dict) else None
        if not isinstance(message, dict):
            continue
        rendered = message.get("rendered")
        spans = message.get("spans")
        if not isinstance(rendered, str) or not isinstance(spans, list):
            continue
        for span in spans:
            finding = _span_to_finding(span, rendered)
            if finding is not None:
                findings.append(finding)
    return findings


def _span_to_finding(span: Any, rendered: str) -> Finding | None:
    if not isinstance(span, dict):
        return None
    file_name = span.get("file_name")
    start = span.get("line_start")
    end = span.get("line_end")
    if not isinstance(file_name, str) or not isinstance(start, int) or not isinstance(end, int):
        return None
    try:
        return Finding(path=file_name, start=start, end=end, message=rendered)
    except ValueError:
        return None
