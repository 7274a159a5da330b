"""Matching lint findings against the lines a diff changed."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Literal

from diff_scout.events import Decision, EventSink
from diff_scout.models import ChangeSet, Finding
from diff_scout.paths import normalize_path, suffix_match_length

PathPolicy = Literal["suffix", "exact"]
PATH_POLICIES: tuple[PathPolicy, ...] = ("suffix", "exact")


def filter_findings(
    change_set: ChangeSet,
    findings: Iterable[Finding],
    *,
    sink: EventSink | None = None,
    case_sensitive: bool = True,
    path_policy: PathPolicy = "suffix",
) -> list[Finding]:
    """Return the findings that touch at least one changed line, in input order.

    Each finding is judged on its own: no merging or deduplication happens, so
    a message reported at two spans must arrive as two findings.
    """
    if path_policy not in PATH_POLICIES:
        raise ValueError(f"path_policy must be one of: {', '.join(PATH_POLICIES)}")

    keys = sorted(change_set)
    kept: list[Finding] = []
    for finding in findings:
        matched = resolve_path(
            finding.path, keys, case_sensitive=case_sensitive, path_policy=path_policy
        )
        if matched is None:
            decision = Decision(finding, None, False, "file not in diff")
        elif overlaps(change_set[matched], *finding.range):
            decision = Decision(finding, matched, True, "span touches changed lines")
        else:
            decision = Decision(finding, matched, False, "span misses changed lines")

        if decision.kept:
            kept.append(finding)
        if sink is not None:
            sink.emit(decision)
    return kept


def resolve_path(
    path: str,
    keys: Sequence[str],
    *,
    case_sensitive: bool = True,
    path_policy: PathPolicy = "suffix",
) -> str | None:
    """Pick the change-set key a finding path refers to.

    Under ``suffix`` the longest component-suffix match wins and ties go to the
    first key in ``keys``; under ``exact`` only normalized equality counts.
    A bare ``lib.rs`` therefore resolves to ``other/lib.rs`` under ``suffix``
    and stays unmatched only under ``exact``.
    """
    wanted = normalize_path(path, case_sensitive=case_sensitive)
    best: str | None = None
    best_length = 0
    for key in keys:
        candidate = normalize_path(key, case_sensitive=case_sensitive)
        if candidate == wanted:
            return key
        if path_policy == "exact":
            continue
        length = suffix_match_length(wanted, candidate)
        if length > best_length:
            best, best_length = key, length
    return best


def overlaps(lines: Iterable[int], start: int, end: int) -> bool:
    """True when some line lies within the inclusive span ``[start, end]``."""
    return any(start <= line <= end for line in lines)
