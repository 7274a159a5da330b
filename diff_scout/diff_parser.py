"""Unified diff parsing into per-file changed-line sets."""

from __future__ import annotations

from dataclasses import dataclass, field
from re import Match, compile

from diff_scout.errors import MalformedDiffError
from diff_scout.events import EventSink, HunkSkipped
from diff_scout.models import ChangeSet
from diff_scout.paths import strip_diff_prefix

HUNK_HEADER_RE = compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))? "
    r"\+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@(?P<section>.*)$"
)

_BODY_PREFIXES = (" ", "+", "-", "\\")


@dataclass(frozen=True, slots=True)
class HunkHeader:
    """Parsed hunk header values."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    section: str


@dataclass(slots=True)
class _FileState:
    old_path: str | None
    new_path: str | None
    from_git_header: bool
    saw_new_header: bool = False
    skipped: bool = False
    lines: set[int] = field(default_factory=set)

    @property
    def display_path(self) -> str:
        return self.new_path or self.old_path or "<unknown>"


def parse_change_set(diff_text: str, sink: EventSink | None = None) -> ChangeSet:
    """Parse unified diff text into the lines each file gained.

    Only lines present on the new side are recorded. Deleted files yield no
    entry. A malformed hunk header abandons the rest of that file, drops the
    lines already collected for it and reports a ``HunkSkipped`` event; other
    files are unaffected.
    """
    collected: dict[str, set[int]] = {}
    current: _FileState | None = None
    old_left = 0
    new_left = 0
    new_lineno = 0

    def flush_file() -> None:
        nonlocal current
        if current is not None and not current.skipped and current.new_path and current.lines:
            collected.setdefault(current.new_path, set()).update(current.lines)
        current = None

    # only "\n" ends a line; form feeds and U+2028 are ordinary content
    lines = [line.removesuffix("\r") for line in diff_text.split("\n")]
    if lines and lines[-1] == "":
        lines.pop()

    for raw_line in lines:
        in_hunk = old_left > 0 or new_left > 0
        if in_hunk and current is not None and (raw_line == "" or raw_line[0] in _BODY_PREFIXES):
            marker = raw_line[:1]
            if marker in {" ", ""}:
                new_lineno += 1
                old_left -= 1
                new_left -= 1
            elif marker == "+":
                current.lines.add(new_lineno)
                new_lineno += 1
                new_left -= 1
            elif marker == "-":
                old_left -= 1
            continue
        old_left = new_left = 0

        if raw_line.startswith("diff --git "):
            flush_file()
            current = _start_file_from_diff_header(raw_line)
            continue

        if raw_line.startswith("--- "):
            if current is None or (not current.from_git_header and current.saw_new_header):
                flush_file()
                current = _FileState(old_path=None, new_path=None, from_git_header=False)
            if not current.skipped:
                current.old_path = strip_diff_prefix(raw_line[4:])
            continue

        if raw_line.startswith("+++ "):
            if current is None:
                current = _FileState(old_path=None, new_path=None, from_git_header=False)
            current.new_path = strip_diff_prefix(raw_line[4:])
            current.saw_new_header = True
            continue

        if raw_line.startswith("@@ "):
            if current is None or current.skipped:
                continue
            try:
                header = parse_hunk_header(raw_line)
            except MalformedDiffError as exc:
                current.skipped = True
                current.lines.clear()
                if sink is not None:
                    sink.emit(
                        HunkSkipped(path=current.display_path, header=raw_line, reason=str(exc))
                    )
                continue
            old_left = header.old_count
            new_left = header.new_count
            new_lineno = header.new_start
            continue

    flush_file()
    return ChangeSet(collected)


def parse_hunk_header(header: str) -> HunkHeader:
    """Parse ``@@ -a,b +c,d @@``; omitted counts default to 1."""
    match: Match[str] | None = HUNK_HEADER_RE.match(header)
    if match is None:
        raise MalformedDiffError(f"Invalid hunk header: {header}")

    old_count = int(match.group("old_count")) if match.group("old_count") else 1
    new_count = int(match.group("new_count")) if match.group("new_count") else 1

    return HunkHeader(
        old_start=int(match.group("old_start")),
        old_count=old_count,
        new_start=int(match.group("new_start")),
        new_count=new_count,
        section=match.group("section").strip(),
    )


def _start_file_from_diff_header(line: str) -> _FileState:
    parts = line.split(maxsplit=3)
    old_path = strip_diff_prefix(parts[2]) if len(parts) > 2 else None
    new_path = strip_diff_prefix(parts[3]) if len(parts) > 3 else None
    return _FileState(old_path=old_path, new_path=new_path, from_git_header=True)
