"""Output rendering for queued file pairs."""

from dataclasses import dataclass
from typing import List, Optional

from .objects import EMPTY_BLOB_ID, GitObjectStore
from .rawline import format_mode, is_directory_mode, object_type

NULL_OBJECT_ID = bytes(20)
ABBREV = 7


@dataclass
class FilePair:
    """One queued change as the engine sees it."""

    status: str  # A, D, M, R, C, U
    old_path: Optional[str] = None
    new_path: Optional[str] = None
    old_mode: int = 0
    new_mode: int = 0
    old_id: bytes = NULL_OBJECT_ID
    new_id: bytes = NULL_OBJECT_ID
    score: Optional[int] = None
    raw_tail: Optional[str] = None

    @property
    def paths(self) -> List[str]:
        """Paths this pair can be selected by."""
        if self.status == "U":
            return [(self.raw_tail or "").strip()]
        return [p for p in (self.old_path, self.new_path) if p is not None]

    @property
    def has_old_side(self) -> bool:
        return self.status in ("D", "M", "R", "C")

    @property
    def has_new_side(self) -> bool:
        return self.status in ("A", "M", "R", "C")


class RawRenderer:
    """Renders pairs back into raw change records."""

    def __init__(self, terminator: str):
        """Initialize with the record terminator."""
        self.terminator = terminator

    def render(self, pair: FilePair) -> str:
        """Render one pair as a terminated record."""
        if pair.status == "U":
            body = f"U{pair.raw_tail}"
        elif pair.status == "A":
            body = (
                f"+{format_mode(pair.new_mode)} {object_type(pair.new_mode)} "
                f"{pair.new_id.hex()}\t{pair.new_path}"
            )
        elif pair.status == "D":
            body = (
                f"-{format_mode(pair.old_mode)} {object_type(pair.old_mode)} "
                f"{pair.old_id.hex()}\t{pair.old_path}"
            )
        else:
            body = (
                f"*{format_mode(pair.old_mode)}->{format_mode(pair.new_mode)} "
                f"{object_type(pair.new_mode)} "
                f"{pair.old_id.hex()}->{pair.new_id.hex()}\t"
            )
            if pair.status == "M":
                body += pair.new_path
            else:
                body += f"{pair.status}{pair.score:03d}\t{pair.old_path}\t{pair.new_path}"
        return body + self.terminator


class PatchRenderer:
    """Renders pairs as git-style patches.

    Hunk bodies come from ``git diff`` between the two blobs; only the
    headers are produced here.
    """

    def __init__(self, store: Optional[GitObjectStore] = None):
        """Initialize with the store used for hunk bodies."""
        self.store = store

    def render(self, pair: FilePair) -> str:
        """Render one pair as patch text."""
        if pair.status == "U":
            return f"* Unmerged path {(pair.raw_tail or '').strip()}\n"

        src = pair.old_path if pair.old_path is not None else pair.new_path
        dst = pair.new_path if pair.new_path is not None else pair.old_path
        lines = [f"diff --git a/{src} b/{dst}"]

        if pair.status == "A":
            lines.append(f"new file mode {format_mode(pair.new_mode)}")
        elif pair.status == "D":
            lines.append(f"deleted file mode {format_mode(pair.old_mode)}")
        elif pair.old_mode != pair.new_mode:
            lines.append(f"old mode {format_mode(pair.old_mode)}")
            lines.append(f"new mode {format_mode(pair.new_mode)}")

        if pair.status in ("R", "C"):
            verb = "rename" if pair.status == "R" else "copy"
            lines.append(f"similarity index {pair.score}%")
            lines.append(f"{verb} from {pair.old_path}")
            lines.append(f"{verb} to {pair.new_path}")

        if pair.old_id == pair.new_id:
            return "\n".join(lines) + "\n"

        index = f"index {pair.old_id.hex()[:ABBREV]}..{pair.new_id.hex()[:ABBREV]}"
        if pair.status == "M" and pair.old_mode == pair.new_mode:
            index += f" {format_mode(pair.new_mode)}"
        lines.append(index)

        text = "\n".join(lines) + "\n"
        if self.store is None or is_directory_mode(pair.old_mode) or is_directory_mode(pair.new_mode):
            return text

        old_label = f"a/{src}" if pair.has_old_side else "/dev/null"
        new_label = f"b/{dst}" if pair.has_new_side else "/dev/null"
        body = self.store.diff_blobs(
            pair.old_id if pair.has_old_side else EMPTY_BLOB_ID,
            pair.new_id if pair.has_new_side else EMPTY_BLOB_ID,
        )
        if body.startswith("Binary files"):
            return text + f"Binary files {old_label} and {new_label} differ\n"
        return text + f"--- {old_label}\n+++ {new_label}\n" + body
