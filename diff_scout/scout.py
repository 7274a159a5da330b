"""Pipeline orchestration: diff, lint, intersect."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from diff_scout.config import ScoutConfig
from diff_scout.events import EventSink, StageStarted
from diff_scout.git import DiffSource, extract_change_set
from diff_scout.intersections import filter_findings
from diff_scout.linters.base import FindingsSource
from diff_scout.models import ChangeSet, Finding

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScoutResult:
    """Everything one run produced."""

    branch: str
    merge_base: str
    linter: str
    change_set: ChangeSet
    findings: tuple[Finding, ...]
    kept: tuple[Finding, ...]

    @property
    def is_clean(self) -> bool:
        return not self.kept


def run_scout(
    config: ScoutConfig,
    diff_source: DiffSource,
    findings_source: FindingsSource,
    *,
    sink: EventSink | None = None,
) -> ScoutResult:
    """Run the three stages in order; any stage error aborts the run.

    The change set is computed before the linter runs, so an unknown branch
    fails fast without paying for a lint pass.
    """
    logger.info("getting diff against target %s", config.branch)
    base, change_set = extract_change_set(diff_source, config.branch, sink=sink)

    logger.info("running %s", findings_source.name)
    if sink is not None:
        sink.emit(StageStarted(stage="lint", detail=findings_source.name))
    findings = findings_source.findings()

    if sink is not None:
        sink.emit(StageStarted(stage="intersect", detail=f"{len(findings)} findings"))
    kept = filter_findings(
        change_set,
        findings,
        sink=sink,
        case_sensitive=config.case_sensitive,
        path_policy=config.path_policy,
    )
    logger.info("%d of %d findings fall inside the diff", len(kept), len(findings))
    return ScoutResult(
        branch=config.branch,
        merge_base=base,
        linter=findings_source.name,
        change_set=change_set,
        findings=tuple(findings),
        kept=tuple(kept),
    )
