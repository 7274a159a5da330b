"""Error taxonomy shared by the extraction and collection stages."""

from __future__ import annotations


class ScoutError(RuntimeError):
    """Base class for fatal diff-scout errors."""


class ConfigurationError(ScoutError):
    """Raised when the target branch or merge base cannot be resolved."""


class ExternalToolError(ScoutError):
    """Raised when git or a lint tool fails or emits undecodable output."""

    def __init__(self, message: str, *, command: list[str] | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.command = list(command or [])
        self.stderr = stderr


class MalformedDiffError(ValueError):
    """Raised for a hunk header that does not follow the unified diff grammar."""
