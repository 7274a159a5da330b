"""Configuration loading for diff-scout."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from diff_scout.intersections import PATH_POLICIES, PathPolicy

CONFIG_FILENAMES = (".diff-scout.toml", "diff-scout.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("diff_scout", "diff-scout")
LINTERS = ("clippy", "rustfmt")
FORMATS = ("human", "json")


@dataclass(frozen=True, slots=True)
class ScoutConfig:
    """Run settings, resolved once and passed by value to every stage."""

    branch: str = "master"
    linter: str = "clippy"
    verbose: bool = False
    no_default_features: bool = False
    all_features: bool = False
    features: str | None = None
    preview: bool = False
    members: tuple[str, ...] = ()
    case_sensitive: bool = True
    path_policy: PathPolicy = "suffix"
    format: str = "human"
    source: str | None = None

    def with_overrides(self, **overrides: Any) -> ScoutConfig:
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if "members" in changes:
            changes["members"] = tuple(changes["members"])
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "branch": self.branch,
            "linter": self.linter,
            "verbose": self.verbose,
            "no_default_features": self.no_default_features,
            "all_features": self.all_features,
            "features": self.features,
            "preview": self.preview,
            "members": list(self.members),
            "case_sensitive": self.case_sensitive,
            "path_policy": self.path_policy,
            "format": self.format,
            "source": self.source,
        }


def load_scout_config(repo: Path, config_path: Path | None = None) -> ScoutConfig:
    """Load config from explicit path or repository-local files with precedence."""
    repo = repo.resolve()
    if config_path is not None:
        resolved = config_path if config_path.is_absolute() else (repo / config_path)
        if not resolved.exists():
            raise ValueError(f"Config file does not exist: {resolved}")
        mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
        return _from_mapping(mapping, source=str(resolved))

    for filename in CONFIG_FILENAMES:
        resolved = repo / filename
        if resolved.exists():
            mapping = _extract_config_mapping(_load_toml(resolved), source_path=resolved)
            return _from_mapping(mapping, source=str(resolved))

    pyproject_path = repo / PYPROJECT_FILENAME
    if pyproject_path.exists():
        mapping = _extract_config_mapping(_load_toml(pyproject_path), source_path=pyproject_path)
        if mapping:
            return _from_mapping(mapping, source=str(pyproject_path))

    return ScoutConfig()


def default_config_template() -> str:
    """Return a starter config template for a cargo repository."""
    return "\n".join(
        [
            'branch = "master"',
            'linter = "clippy"',
            'format = "human"',
            "",
            "# Run the linter once per workspace member instead of at the root.",
            '# members = ["crate-a", "crate-b"]',
            "",
            "no_default_features = false",
            "all_features = false",
            '# features = "serde,tokio"',
            "preview = false",
            "",
            '# "suffix" lets crate-relative lint paths match repository paths.',
            'path_policy = "suffix"',
            "case_sensitive = true",
            "",
        ]
    )


def validate_config(config: ScoutConfig) -> ScoutConfig:
    """Check choice-valued fields after CLI overrides were applied."""
    _as_choice(config.linter, set(LINTERS), "linter")
    _as_choice(config.format, set(FORMATS), "format")
    _as_choice(config.path_policy, set(PATH_POLICIES), "path_policy")
    if not config.branch:
        raise ValueError("branch must not be empty")
    return config


def _load_toml(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as file_obj:
            loaded = tomllib.load(file_obj)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        return {}
    return loaded


def _extract_config_mapping(loaded: dict[str, Any], *, source_path: Path) -> dict[str, Any]:
    if source_path.name == PYPROJECT_FILENAME:
        section = _find_pyproject_tool_section(loaded)
        return section if section is not None else {}

    tool_section = _find_pyproject_tool_section(loaded)
    if tool_section is not None:
        return tool_section
    return loaded


def _find_pyproject_tool_section(loaded: dict[str, Any]) -> dict[str, Any] | None:
    tool = loaded.get("tool")
    if not isinstance(tool, dict):
        return None
    for key in PYPROJECT_TOOL_KEYS:
        section = tool.get(key)
        if isinstance(section, dict):
            return section
    return None


def _from_mapping(mapping: dict[str, Any], *, source: str) -> ScoutConfig:
    defaults = ScoutConfig()
    features = mapping.get("features")
    if features is not None:
        features = _as_str(features, "features")

    return validate_config(
        ScoutConfig(
            branch=_as_str(mapping.get("branch", defaults.branch), "branch"),
            linter=_as_choice(mapping.get("linter", defaults.linter), set(LINTERS), "linter"),
            verbose=_as_bool(mapping.get("verbose", False), "verbose"),
            no_default_features=_as_bool(
                mapping.get("no_default_features", False), "no_default_features"
            ),
            all_features=_as_bool(mapping.get("all_features", False), "all_features"),
            features=features,
            preview=_as_bool(mapping.get("preview", False), "preview"),
            members=tuple(_as_str_list(mapping.get("members"), "members")),
            case_sensitive=_as_bool(mapping.get("case_sensitive", True), "case_sensitive"),
            path_policy=_as_choice(
                mapping.get("path_policy", defaults.path_policy),
                set(PATH_POLICIES),
                "path_policy",
            ),
            format=_as_choice(mapping.get("format", defaults.format), set(FORMATS), "format"),
            source=source,
        )
    )


def _as_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list of strings")
    items: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"{field_name} must be a list of strings")
        items.append(item)
    return items


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{field_name} must be a string")
    return value


def _as_choice(raw: Any, allowed: set[str], field_name: str) -> str:
    value = str(raw).lower()
    if value not in allowed:
        choices = ", ".join(sorted(allowed))
        raise ValueError(f"{field_name} must be one of: {choices}")
    return value


def _as_bool(raw: Any, field_name: str) -> bool:
    if not isinstance(raw, bool):
        raise ValueError(f"{field_name} must be a boolean")
    return raw
