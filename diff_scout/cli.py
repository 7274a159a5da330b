"""CLI entrypoint for diff-scout."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer

from diff_scout import __version__
from diff_scout.config import (
    ScoutConfig,
    default_config_template,
    load_scout_config,
    validate_config,
)
from diff_scout.errors import ExternalToolError, ScoutError
from diff_scout.events import CollectingSink, EventSink, FanOutSink, LoggingSink
from diff_scout.git import GitDiffSource, extract_change_set
from diff_scout.linters import build_findings_source, list_linter_info
from diff_scout.output import render_change_set, render_human, render_json
from diff_scout.scout import run_scout

app = typer.Typer(
    name="diff-scout",
    no_args_is_help=True,
    help="Report only the lint warnings your branch introduced.",
)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
) -> None:
    """Root command callback."""
    _ = version


@app.command("check")
def check_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    branch: Annotated[
        str | None, typer.Option("--branch", "-b", help="Target branch.", show_default="master")
    ] = None,
    linter: Annotated[
        str | None, typer.Option(help="Linter: clippy|rustfmt.", show_default="clippy")
    ] = None,
    member: Annotated[
        list[str] | None,
        typer.Option("--member", help="Workspace member to lint separately (repeatable)."),
    ] = None,
    features: Annotated[str | None, typer.Option(help="Cargo features to enable.")] = None,
    all_features: Annotated[
        bool, typer.Option("--all-features", help="Activate all cargo features.")
    ] = False,
    no_default_features: Annotated[
        bool, typer.Option("--no-default-features", help="Disable default cargo features.")
    ] = False,
    preview: Annotated[
        bool, typer.Option("--preview", help="Use nightly clippy-preview.")
    ] = False,
    ignore_case: Annotated[
        bool, typer.Option("--ignore-case", help="Compare paths case-insensitively.")
    ] = False,
    path_policy: Annotated[
        str | None, typer.Option(help="Path matching: suffix|exact.", show_default="suffix")
    ] = None,
    lint_output: Annotated[
        Path | None,
        typer.Option(
            exists=True,
            dir_okay=False,
            help="Parse previously captured linter output instead of running it.",
        ),
    ] = None,
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    trace: Annotated[
        bool, typer.Option("--trace", help="Include per-finding decisions in JSON output.")
    ] = False,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log diagnostics.")] = False,
) -> None:
    """Lint the checkout and report findings on lines changed since the merge base."""
    config = _resolve_config_or_raise(
        repo,
        config_file,
        branch=branch,
        linter=linter.lower() if linter else None,
        members=member or None,
        features=features,
        all_features=all_features or None,
        no_default_features=no_default_features or None,
        preview=preview or None,
        case_sensitive=False if ignore_case else None,
        path_policy=path_policy.lower() if path_policy else None,
        format=format.lower() if format else None,
        verbose=verbose or None,
    )
    _configure_logging(config.verbose)

    collector = CollectingSink() if trace else None
    sink: EventSink = FanOutSink(LoggingSink(), collector) if collector else LoggingSink()
    repo_path = repo.resolve()
    try:
        saved_output = _read_saved_output(lint_output) if lint_output is not None else None
        findings_source = build_findings_source(config, repo_path, saved_output=saved_output)
        result = run_scout(config, GitDiffSource(repo_path), findings_source, sink=sink)
    except ScoutError as exc:
        _fail(exc)

    if config.format == "json":
        typer.echo(render_json(result, trace=collector.events if collector else None))
    else:
        typer.echo(render_human(result))

    if not result.is_clean:
        raise typer.Exit(code=1)


@app.command("changes")
def changes_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    branch: Annotated[
        str | None, typer.Option("--branch", "-b", help="Target branch.", show_default="master")
    ] = None,
    format: Annotated[
        str | None, typer.Option(help="Output format: human|json.", show_default="human")
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log diagnostics.")] = False,
) -> None:
    """Show the lines changed since the merge base with the target branch."""
    config = _resolve_config_or_raise(
        repo,
        config_file,
        branch=branch,
        format=format.lower() if format else None,
        verbose=verbose or None,
    )
    _configure_logging(config.verbose)

    try:
        base, change_set = extract_change_set(
            GitDiffSource(repo.resolve()), config.branch, sink=LoggingSink()
        )
    except ScoutError as exc:
        _fail(exc)

    if config.format == "json":
        payload = {
            "branch": config.branch,
            "merge_base": base,
            "changed_files": change_set.to_dict(),
        }
        typer.echo(json.dumps(payload, sort_keys=True))
        return
    typer.echo(render_change_set(change_set))


@app.command("linters")
def linters_command() -> None:
    """List available linters."""
    lines = ["Available linters:"]
    for info in list_linter_info():
        lines.append(f"- {info.name} - {info.description}")
    typer.echo("\n".join(lines))


@app.command("config")
def config_command(
    repo: Annotated[Path, typer.Option(help="Repository path.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show resolved configuration."""
    output_format = format.lower()
    if output_format not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")

    payload = _resolve_config_or_raise(repo, config_file).to_dict()
    if output_format == "json":
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    lines = ["Resolved configuration:", f"- source: {payload.pop('source') or 'defaults'}"]
    lines.extend(f"- {key}: {value}" for key, value in payload.items())
    typer.echo("\n".join(lines))


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Output path for starter config TOML.")] = Path(
        ".diff-scout.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite if file already exists."),
    ] = False,
) -> None:
    """Create a starter repository config file."""
    out_path = out.resolve()
    if out_path.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {out_path}. Use --force to overwrite."
        )
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {out_path}")


def main() -> None:
    """Console script entrypoint."""
    app()


def _resolve_config_or_raise(
    repo: Path, config_file: Path | None = None, **overrides: Any
) -> ScoutConfig:
    try:
        config = load_scout_config(repo, config_path=config_file)
        return validate_config(config.with_overrides(**overrides))
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _read_saved_output(path: Path) -> str:
    try:
        return path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ExternalToolError(f"{path} is not valid UTF-8 linter output") from exc
    except OSError as exc:
        raise ExternalToolError(f"cannot read linter output {path}: {exc}") from exc


def _fail(exc: ScoutError) -> NoReturn:
    typer.echo(f"error: {exc}", err=True)
    if isinstance(exc, ExternalToolError) and exc.stderr and exc.stderr != str(exc):
        typer.echo(exc.stderr, err=True)
    raise typer.Exit(code=2) from exc
