"""Immutable values passed between extraction, collection and filtering."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from diff_scout.paths import normalize_path


class ChangeSet(Mapping[str, frozenset[int]]):
    """Changed line numbers per repository-relative file path.

    Keys are normalized slash-separated paths. Files whose line set would be
    empty (pure deletions) get no entry.
    """

    __slots__ = ("_files",)

    def __init__(self, files: Mapping[str, Iterable[int]] | None = None) -> None:
        collected: dict[str, frozenset[int]] = {}
        for raw_path, raw_lines in (files or {}).items():
            lines = frozenset(raw_lines)
            if any(line < 1 for line in lines):
                raise ValueError(f"line numbers must be positive: {raw_path}")
            if not lines:
                continue
            path = normalize_path(raw_path)
            collected[path] = collected.get(path, frozenset()) | lines
        self._files: Mapping[str, frozenset[int]] = MappingProxyType(collected)

    def __getitem__(self, path: str) -> frozenset[int]:
        return self._files[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __repr__(self) -> str:
        return f"ChangeSet({self.to_dict()!r})"

    def lines(self, path: str) -> frozenset[int]:
        """Changed lines for an exact key, empty when the file is untouched."""
        return self._files.get(normalize_path(path), frozenset())

    def to_dict(self) -> dict[str, list[int]]:
        return {path: sorted(lines) for path, lines in sorted(self._files.items())}


@dataclass(frozen=True, slots=True)
class Finding:
    """A single lint report covering one inclusive line span of one file."""

    path: str
    start: int
    end: int
    message: str

    def __post_init__(self) -> None:
        if self.start < 1:
            raise ValueError(f"finding start line must be >= 1, got {self.start}")
        if self.start > self.end:
            raise ValueError(f"finding range is inverted: [{self.start}, {self.end}]")

    @property
    def range(self) -> tuple[int, int]:
        return (self.start, self.end)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "start": self.start,
            "end": self.end,
            "message": self.message,
        }
