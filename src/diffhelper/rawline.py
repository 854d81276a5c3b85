"""Raw change line decoding for diffhelper.

Each input line describes one file-level change. The first character selects
the line kind::

    U<anything>                                   unmerged path
    +<mode> blob <sha1> <path>                    added entry
    -<mode> blob <sha1> <path>                    removed entry
    *<mode>-><mode> blob <sha1>-><sha1> <path>    modified entry

Type markers may be spelled with spaces or tabs and name either ``blob`` or
``tree``. The path is the remainder of the line, taken verbatim.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple, Union

from .errors import DecodeError

OBJECT_ID_HEX_LENGTH = 40
OBJECT_ID_RAW_LENGTH = 20

TYPE_MARKERS = (" blob ", "\tblob\t", " tree ", "\ttree\t")
ARROW = "->"
SEPARATORS = (" ", "\t")

S_IFMT = 0o170000
S_IFDIR = 0o040000

_HEX_PATTERN = re.compile(r"[0-9a-fA-F]{40}")


def parse_octal_mode(text: str, start: int = 0) -> Tuple[int, int]:
    """Accumulate octal digits from ``start``; return (mode, end offset)."""
    mode = 0
    pos = start
    while pos < len(text) and "0" <= text[pos] <= "7":
        mode = (mode << 3) | (ord(text[pos]) - ord("0"))
        pos += 1
    return mode, pos


def decode_object_id(text: str) -> bytes:
    """Decode exactly 40 hex characters into a 20-byte object id."""
    if not _HEX_PATTERN.fullmatch(text):
        raise DecodeError(text, "object id must be 40 hex digits")
    return bytes.fromhex(text)


def format_mode(mode: int) -> str:
    """Render a mode as zero-padded octal."""
    return "%06o" % mode


def is_directory_mode(mode: int) -> bool:
    return (mode & S_IFMT) == S_IFDIR


def object_type(mode: int) -> str:
    return "tree" if is_directory_mode(mode) else "blob"


@dataclass(frozen=True)
class Added:
    """A new entry."""

    mode: int
    object_id: bytes
    path: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "added",
            "mode": format_mode(self.mode),
            "object_id": self.object_id.hex(),
            "path": self.path,
        }


@dataclass(frozen=True)
class Removed:
    """A deleted entry."""

    mode: int
    object_id: bytes
    path: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "removed",
            "mode": format_mode(self.mode),
            "object_id": self.object_id.hex(),
            "path": self.path,
        }


@dataclass(frozen=True)
class Modified:
    """An entry whose mode or content changed in place."""

    old_mode: int
    new_mode: int
    old_object_id: bytes
    new_object_id: bytes
    path: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "modified",
            "old_mode": format_mode(self.old_mode),
            "new_mode": format_mode(self.new_mode),
            "old_object_id": self.old_object_id.hex(),
            "new_object_id": self.new_object_id.hex(),
            "path": self.path,
        }


@dataclass(frozen=True)
class Unmerged:
    """An unmerged path; the tail is forwarded without interpretation."""

    raw_tail: str

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "unmerged", "raw_tail": self.raw_tail}


ChangeEvent = Union[Added, Removed, Modified, Unmerged]


class _Cursor:
    """Left-to-right scanner over a single line."""

    def __init__(self, line: str, pos: int = 1):
        self.line = line
        self.pos = pos

    def fail(self, reason: str) -> DecodeError:
        return DecodeError(self.line, f"{reason} at offset {self.pos}")

    def octal(self) -> int:
        mode, self.pos = parse_octal_mode(self.line, self.pos)
        return mode

    def expect(self, *tokens: str) -> str:
        for token in tokens:
            if self.line.startswith(token, self.pos):
                self.pos += len(token)
                return token
        raise self.fail("expected one of " + ", ".join(repr(t) for t in tokens))

    def object_id(self) -> bytes:
        text = self.line[self.pos:self.pos + OBJECT_ID_HEX_LENGTH]
        if not _HEX_PATTERN.fullmatch(text):
            raise self.fail("expected 40 hex digit object id")
        self.pos += OBJECT_ID_HEX_LENGTH
        return bytes.fromhex(text)

    def separator(self) -> None:
        if self.line[self.pos:self.pos + 1] not in SEPARATORS:
            raise self.fail("expected space or tab separator")
        self.pos += 1

    def rest(self) -> str:
        return self.line[self.pos:]


def _one_sided(cursor: _Cursor) -> Tuple[int, bytes, str]:
    mode = cursor.octal()
    cursor.expect(*TYPE_MARKERS)
    object_id = cursor.object_id()
    cursor.separator()
    return mode, object_id, cursor.rest()


def _unmerged(cursor: _Cursor) -> Unmerged:
    return Unmerged(raw_tail=cursor.rest())


def _added(cursor: _Cursor) -> Added:
    return Added(*_one_sided(cursor))


def _removed(cursor: _Cursor) -> Removed:
    return Removed(*_one_sided(cursor))


def _modified(cursor: _Cursor) -> Modified:
    old_mode = cursor.octal()
    cursor.expect(ARROW)
    new_mode = cursor.octal()
    cursor.expect(*TYPE_MARKERS)
    old_object_id = cursor.object_id()
    cursor.expect(ARROW)
    new_object_id = cursor.object_id()
    cursor.separator()
    return Modified(
        old_mode=old_mode,
        new_mode=new_mode,
        old_object_id=old_object_id,
        new_object_id=new_object_id,
        path=cursor.rest(),
    )


LINE_RULES: Dict[str, Callable[[_Cursor], ChangeEvent]] = {
    "U": _unmerged,
    "+": _added,
    "-": _removed,
    "*": _modified,
}


def decode_line(line: str) -> ChangeEvent:
    """Decode one raw change line (without its terminator).

    Raises:
        DecodeError: the line does not match any rule.
    """
    rule = LINE_RULES.get(line[:1])
    if rule is None:
        raise DecodeError(line, "unrecognized leading character")
    return rule(_Cursor(line))
