"""Tests for unified diff parsing into change sets."""

from pathlib import Path

import pytest

from diff_scout.diff_parser import parse_change_set, parse_hunk_header
from diff_scout.errors import MalformedDiffError
from diff_scout.events import CollectingSink, HunkSkipped

FIXTURE_DIR = Path(__file__).parent / "fixtures" / "diffs"


def _load_fixture(name: str) -> str:
    return (FIXTURE_DIR / name).read_text(encoding="utf-8")


def test_parse_simple_diff() -> None:
    change_set = parse_change_set(_load_fixture("simple.diff"))
    assert change_set.to_dict() == {"src/app.rs": [2, 3]}


def test_context_and_removed_lines_are_not_recorded() -> None:
    diff_text = "\n".join(
        [
            "diff --git a/src/lib.rs b/src/lib.rs",
            "--- a/src/lib.rs",
            "+++ b/src/lib.rs",
            "@@ -10,3 +10,4 @@",
            " ctx",
            "-old",
            "+new1",
            "+new2",
            " ctx2",
        ]
    )
    assert parse_change_set(diff_text)["src/lib.rs"] == frozenset({11, 12})


def test_deleted_file_has_no_entry_and_new_file_is_fully_recorded() -> None:
    change_set = parse_change_set(_load_fixture("new_and_deleted.diff"))
    assert change_set.to_dict() == {"docs/new.md": [1, 2]}
    assert "tests/legacy.rs" not in change_set


def test_no_newline_marker_is_metadata() -> None:
    change_set = parse_change_set(_load_fixture("no_newline_marker.diff"))
    assert change_set.to_dict() == {"notes.txt": [1]}


def test_malformed_hunk_abandons_only_that_file() -> None:
    sink = CollectingSink()
    change_set = parse_change_set(_load_fixture("malformed_hunk.diff"), sink=sink)

    assert change_set.to_dict() == {"src/a.rs": [2], "src/c.rs": [5]}
    skipped = [event for event in sink.events if isinstance(event, HunkSkipped)]
    assert len(skipped) == 1
    assert skipped[0].path == "src/b.rs"
    assert skipped[0].header == "@@ -x,1 +9,2 @@"


def test_multiple_hunks_in_one_file_accumulate() -> None:
    diff_text = "\n".join(
        [
            "diff --git a/src/lib.rs b/src/lib.rs",
            "--- a/src/lib.rs",
            "+++ b/src/lib.rs",
            "@@ -1,2 +1,3 @@",
            " one",
            "+two",
            " three",
            "@@ -20,2 +21,2 @@ fn later()",
            "-old",
            "+new",
            " tail",
        ]
    )
    assert parse_change_set(diff_text).to_dict() == {"src/lib.rs": [2, 21]}


def test_removed_line_that_looks_like_a_header_stays_in_the_hunk() -> None:
    diff_text = "\n".join(
        [
            "diff --git a/schema.sql b/schema.sql",
            "--- a/schema.sql",
            "+++ b/schema.sql",
            "@@ -1,2 +1,2 @@",
            "--- old comment",
            "+-- new comment",
            " keep",
        ]
    )
    assert parse_change_set(diff_text).to_dict() == {"schema.sql": [1]}


def test_unified_diff_without_git_headers() -> None:
    diff_text = "\n".join(
        [
            "--- a/one.txt\t2024-01-01 00:00:00",
            "+++ b/one.txt\t2024-01-02 00:00:00",
            "@@ -1 +1 @@",
            "-a",
            "+b",
            "--- a/two.txt",
            "+++ b/two.txt",
            "@@ -3,0 +4,2 @@",
            "+c",
            "+d",
        ]
    )
    assert parse_change_set(diff_text).to_dict() == {"one.txt": [1], "two.txt": [4, 5]}


def test_pure_deletion_hunk_produces_no_entry() -> None:
    diff_text = "\n".join(
        [
            "diff --git a/src/lib.rs b/src/lib.rs",
            "--- a/src/lib.rs",
            "+++ b/src/lib.rs",
            "@@ -3,2 +2,0 @@",
            "-gone",
            "-also gone",
        ]
    )
    assert len(parse_change_set(diff_text)) == 0


def test_renamed_file_is_keyed_by_new_path() -> None:
    diff_text = "\n".join(
        [
            "diff --git a/src/old.rs b/src/new.rs",
            "similarity index 80%",
            "rename from src/old.rs",
            "rename to src/new.rs",
            "--- a/src/old.rs",
            "+++ b/src/new.rs",
            "@@ -1,2 +1,2 @@",
            " keep",
            "-x",
            "+y",
        ]
    )
    assert parse_change_set(diff_text).to_dict() == {"src/new.rs": [2]}


def test_empty_diff_gives_empty_change_set() -> None:
    assert len(parse_change_set("")) == 0


def test_parse_hunk_header_defaults_missing_counts() -> None:
    header = parse_hunk_header("@@ -5 +7 @@ fn main()")
    assert (header.old_start, header.old_count, header.new_start, header.new_count) == (5, 1, 7, 1)
    assert header.section == "fn main()"


def test_invalid_hunk_header_raises() -> None:
    with pytest.raises(MalformedDiffError, match="Invalid hunk header"):
        parse_hunk_header("@@ -x +1 @@")


def test_form_feed_and_unicode_separators_stay_inside_their_line() -> None:
    diff_text = "\n".join(
        [
            "diff --git a/src/lib.rs b/src/lib.rs",
            "--- a/src/lib.rs",
            "+++ b/src/lib.rs",
            "@@ -1,1 +1,4 @@",
            " ctx",
            "+// page\x0cbreak",
            '+let s = "a\u2028b";',
            "+three",
        ]
    )
    assert parse_change_set(diff_text)["src/lib.rs"] == frozenset({2, 3, 4})


def test_crlf_line_endings_are_tolerated() -> None:
    diff_text = "\r\n".join(
        [
            "diff --git a/win.txt b/win.txt",
            "--- a/win.txt",
            "+++ b/win.txt",
            "@@ -1,2 +1,3 @@",
            " one",
            "",
            "+added",
        ]
    )
    assert parse_change_set(diff_text + "\r\n").to_dict() == {"win.txt": [3]}


def test_quoted_header_paths_are_unquoted() -> None:
    diff_text = "\n".join(
        [
            'diff --git "a/caf\\303\\251.rs" "b/caf\\303\\251.rs"',
            "new file mode 100644",
            "--- /dev/null",
            '+++ "b/caf\\303\\251.rs"',
            "@@ -0,0 +1 @@",
            "+fn main() {}",
        ]
    )
    assert parse_change_set(diff_text).to_dict() == {"café.rs": [1]}
