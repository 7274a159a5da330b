"""Linters package."""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from diff_scout.config import ScoutConfig
from diff_scout.linters.base import (
    FindingsSource,
    Linter,
    LinterFindingsSource,
    StaticFindingsSource,
)
from diff_scout.linters.clippy import ClippyLinter, parse_clippy_output
from diff_scout.linters.rustfmt import RustfmtLinter, parse_rustfmt_output
from diff_scout.models import Finding


@dataclass(frozen=True, slots=True)
class LinterInfo:
    """Linter metadata for listing and selection."""

    name: str
    description: str
    factory: Callable[[ScoutConfig], Linter]
    parser: Callable[[str], list[Finding]]


def _clippy(config: ScoutConfig) -> Linter:
    return ClippyLinter(
        verbose=config.verbose,
        no_default_features=config.no_default_features,
        all_features=config.all_features,
        features=config.features,
        preview=config.preview,
    )


def _rustfmt(config: ScoutConfig) -> Linter:
    return RustfmtLinter()


_LINTERS: dict[str, LinterInfo] = {
    "clippy": LinterInfo(
        name="clippy",
        description="cargo clippy with clippy::all and clippy::pedantic as warnings",
        factory=_clippy,
        parser=parse_clippy_output,
    ),
    "rustfmt": LinterInfo(
        name="rustfmt",
        description="cargo +nightly fmt formatting mismatches",
        factory=_rustfmt,
        parser=parse_rustfmt_output,
    ),
}


def list_linter_info() -> list[LinterInfo]:
    return list(_LINTERS.values())


def get_linter_info(name: str) -> LinterInfo:
    info = _LINTERS.get(name)
    if info is None:
        choices = ", ".join(sorted(_LINTERS))
        raise ValueError(f"linter must be one of: {choices}")
    return info


def build_findings_source(
    config: ScoutConfig, repo: Path, *, saved_output: str | None = None
) -> FindingsSource:
    """Build the findings source for ``config.linter``.

    With ``saved_output`` the tool is not run; its previously captured output
    is parsed instead. Otherwise the linter runs at ``repo`` or once per
    configured workspace member.
    """
    info = get_linter_info(config.linter)
    if saved_output is not None:
        return StaticFindingsSource(info.parser(saved_output), name=info.name)
    return LinterFindingsSource(info.factory(config), repo, config.members)


__all__ = [
    "FindingsSource",
    "Linter",
    "LinterInfo",
    "build_findings_source",
    "get_linter_info",
    "list_linter_info",
]
