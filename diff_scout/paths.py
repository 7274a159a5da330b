"""Path normalization shared by the diff parser and the intersection engine."""

from __future__ import annotations

from pathlib import PurePosixPath

DEV_NULL = "/dev/null"

# single-character escapes git uses when it C-quotes a path
_C_ESCAPES = {
    "a": b"\a",
    "b": b"\b",
    "t": b"\t",
    "n": b"\n",
    "v": b"\v",
    "f": b"\f",
    "r": b"\r",
    '"': b'"',
    "\\": b"\\",
}


def normalize_path(path: str, *, case_sensitive: bool = True) -> str:
    """Return a slash-separated path without empty or ``.`` components."""
    value = "/".join(path_components(path))
    return value if case_sensitive else value.lower()


def path_components(path: str) -> tuple[str, ...]:
    """Split a path on either separator, dropping empty and ``.`` parts."""
    parts = PurePosixPath(path.replace("\\", "/")).parts
    return tuple(part for part in parts if part not in {"", ".", "/"})


def strip_diff_prefix(value: str) -> str | None:
    r"""Return the path named in a ``---``/``+++`` header, or None for /dev/null.

    A trailing tab-separated timestamp (as written by ``diff -u``) is dropped and
    a C-quoted name (``"b/caf\303\251.rs"``) is unquoted first.
    """
    token = value.rstrip("\r\n").split("\t", 1)[0].strip()
    if len(token) >= 2 and token.startswith('"') and token.endswith('"'):
        token = unquote_c_path(token)
    if token == DEV_NULL:
        return None
    if token.startswith("a/") or token.startswith("b/"):
        token = token[2:]
    return normalize_path(token)


def unquote_c_path(token: str) -> str:
    r"""Decode a path git wrapped in double quotes with C-style escapes.

    Octal escapes are raw bytes, so ``\303\251`` decodes to ``\u00e9``.
    """
    body = token[1:-1] if token.startswith('"') and token.endswith('"') else token
    raw = bytearray()
    index = 0
    while index < len(body):
        char = body[index]
        if char != "\\" or index + 1 == len(body):
            raw.extend(char.encode("utf-8"))
            index += 1
            continue
        escaped = body[index + 1]
        octal = body[index + 1 : index + 4]
        if len(octal) == 3 and all(digit in "01234567" for digit in octal):
            raw.append(int(octal, 8) & 0xFF)
            index += 4
        else:
            raw.extend(_C_ESCAPES.get(escaped, b"\\" + escaped.encode("utf-8")))
            index += 2
    return raw.decode("utf-8", errors="replace")


def suffix_match_length(left: str, right: str) -> int:
    """Count trailing components shared when one path is a suffix of the other.

    Matching happens on whole components only, so ``lib.rs`` matches
    ``src/lib.rs`` but ``b.rs`` never matches ``ab.rs``. Returns 0 when
    neither path is a component suffix of the other.
    """
    left_parts = path_components(left)
    right_parts = path_components(right)
    shorter = min(len(left_parts), len(right_parts))
    if shorter == 0:
        return 0
    if left_parts[-shorter:] != right_parts[-shorter:]:
        return 0
    return shorter
