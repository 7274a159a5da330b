"""Tests for config loading and the config CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from diff_scout.cli import app
from diff_scout.config import ScoutConfig, load_scout_config, validate_config

runner = CliRunner()


def test_defaults_without_config_files(tmp_path: Path) -> None:
    config = load_scout_config(tmp_path)
    assert config == ScoutConfig()
    assert config.branch == "master"
    assert config.linter == "clippy"
    assert config.source is None


def test_dot_file_wins_over_pyproject(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        "\n".join(["[tool.diff_scout]", 'branch = "develop"']),
        encoding="utf-8",
    )
    (tmp_path / ".diff-scout.toml").write_text(
        "\n".join(
            [
                'branch = "main"',
                'linter = "rustfmt"',
                'members = ["crate-a", "crate-b"]',
                "all_features = true",
                'path_policy = "exact"',
            ]
        ),
        encoding="utf-8",
    )

    config = load_scout_config(tmp_path)

    assert config.branch == "main"
    assert config.linter == "rustfmt"
    assert config.members == ("crate-a", "crate-b")
    assert config.all_features is True
    assert config.path_policy == "exact"
    assert config.source == str(tmp_path.resolve() / ".diff-scout.toml")


def test_pyproject_hyphenated_key(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        "\n".join(["[tool.diff-scout]", 'branch = "trunk"', "case_sensitive = false"]),
        encoding="utf-8",
    )
    config = load_scout_config(tmp_path)
    assert config.branch == "trunk"
    assert config.case_sensitive is False


def test_pyproject_without_section_gives_defaults(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n', encoding="utf-8")
    assert load_scout_config(tmp_path).source is None


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ('linter = "eslint"', "linter must be one of"),
        ("verbose = 1", "verbose must be a boolean"),
        ('members = "crate-a"', "members must be a list of strings"),
        ("branch = [", "Invalid TOML"),
    ],
)
def test_invalid_values_are_rejected(tmp_path: Path, content: str, message: str) -> None:
    (tmp_path / ".diff-scout.toml").write_text(content, encoding="utf-8")
    with pytest.raises(ValueError, match=message):
        load_scout_config(tmp_path)


def test_explicit_missing_config_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="does not exist"):
        load_scout_config(tmp_path, config_path=Path("nope.toml"))


def test_overrides_return_a_new_value() -> None:
    base = ScoutConfig(branch="main")
    updated = base.with_overrides(branch=None, linter="rustfmt", members=["x"])

    assert base.linter == "clippy"
    assert updated.branch == "main"
    assert updated.linter == "rustfmt"
    assert updated.members == ("x",)
    with pytest.raises(ValueError, match="path_policy"):
        validate_config(base.with_overrides(path_policy="fuzzy"))


def test_config_command_json(tmp_path: Path) -> None:
    (tmp_path / ".diff-scout.toml").write_text('branch = "develop"\n', encoding="utf-8")

    result = runner.invoke(app, ["config", "--repo", str(tmp_path), "--format", "json"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["branch"] == "develop"
    assert payload["linter"] == "clippy"
    assert payload["members"] == []


def test_config_command_human_defaults(tmp_path: Path) -> None:
    result = runner.invoke(app, ["config", "--repo", str(tmp_path)])
    assert result.exit_code == 0
    assert "- source: defaults" in result.stdout
    assert "- branch: master" in result.stdout


def test_config_init_writes_loadable_template(tmp_path: Path) -> None:
    out = tmp_path / ".diff-scout.toml"

    result = runner.invoke(app, ["config-init", "--out", str(out)])
    assert result.exit_code == 0
    assert load_scout_config(tmp_path) == ScoutConfig(source=str(out.resolve()))

    again = runner.invoke(app, ["config-init", "--out", str(out)])
    assert again.exit_code == 2
    assert runner.invoke(app, ["config-init", "--out", str(out), "--force"]).exit_code == 0
