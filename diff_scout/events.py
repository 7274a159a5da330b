"""Diagnostic events and the sinks that receive them.

Pipeline stages accept an optional ``EventSink``. Passing ``None`` disables
tracing; nothing a sink does can change a stage's result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from diff_scout.models import Finding

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Decision:
    """Why a finding was kept or dropped by the intersection engine."""

    finding: Finding
    matched_path: str | None
    kept: bool
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "finding": self.finding.to_dict(),
            "matched_path": self.matched_path,
            "kept": self.kept,
            "reason": self.reason,
        }


@dataclass(frozen=True, slots=True)
class HunkSkipped:
    """A file's remaining hunks were abandoned after a malformed header."""

    path: str
    header: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "header": self.header, "reason": self.reason}


@dataclass(frozen=True, slots=True)
class StageStarted:
    """A pipeline stage is about to run."""

    stage: str
    detail: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"stage": self.stage, "detail": self.detail}


Event = Decision | HunkSkipped | StageStarted


class EventSink(Protocol):
    """Receiver for diagnostic events."""

    def emit(self, event: Event) -> None:
        """Handle one event."""


class LoggingSink:
    """Forward events to the ``logging`` module."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def emit(self, event: Event) -> None:
        if isinstance(event, Decision):
            verdict = "kept" if event.kept else "dropped"
            self._log.debug(
                "%s %s:%d-%d (%s)",
                verdict,
                event.finding.path,
                event.finding.start,
                event.finding.end,
                event.reason,
            )
        elif isinstance(event, HunkSkipped):
            self._log.warning(
                "skipping remaining hunks of %s: %s (%s)", event.path, event.reason, event.header
            )
        else:
            self._log.info("%s %s", event.stage, event.detail)


@dataclass(slots=True)
class CollectingSink:
    """Keep every event in memory, in emission order."""

    events: list[Event] = field(default_factory=list)

    def emit(self, event: Event) -> None:
        self.events.append(event)

    def decisions(self) -> list[Decision]:
        return [event for event in self.events if isinstance(event, Decision)]


class FanOutSink:
    """Send each event to several sinks."""

    def __init__(self, *sinks: EventSink) -> None:
        self._sinks = sinks

    def emit(self, event: Event) -> None:
        for sink in self._sinks:
            sink.emit(event)
