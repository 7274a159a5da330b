"""Tests for diagnostic event sinks."""

from __future__ import annotations

import logging

import pytest

from diff_scout.events import (
    CollectingSink,
    Decision,
    FanOutSink,
    HunkSkipped,
    LoggingSink,
    StageStarted,
)
from diff_scout.models import Finding


def test_logging_sink_levels(caplog: pytest.LogCaptureFixture) -> None:
    finding = Finding(path="src/lib.rs", start=3, end=4, message="w")
    sink = LoggingSink()

    with caplog.at_level(logging.DEBUG, logger="diff_scout.events"):
        sink.emit(Decision(finding, None, False, "file not in diff"))
        sink.emit(HunkSkipped(path="src/b.rs", header="@@ bad @@", reason="Invalid hunk header"))
        sink.emit(StageStarted(stage="lint", detail="clippy"))

    assert [record.levelno for record in caplog.records] == [
        logging.DEBUG,
        logging.WARNING,
        logging.INFO,
    ]
    assert caplog.records[0].getMessage() == "dropped src/lib.rs:3-4 (file not in diff)"
    assert "src/b.rs" in caplog.records[1].getMessage()


def test_fan_out_sink_forwards_to_every_sink() -> None:
    first, second = CollectingSink(), CollectingSink()
    event = StageStarted(stage="diff")

    FanOutSink(first, second).emit(event)

    assert first.events == [event]
    assert second.events == [event]
