"""Diff engine: accumulates file pairs, pairs renames, filters and renders."""

import difflib
import logging
from typing import BinaryIO, Dict, List, Optional, Sequence

from .config import PATCH_OUTPUT, RenameMode
from .objects import GitObjectStore
from .rawline import is_directory_mode
from .render import FilePair, PatchRenderer, RawRenderer

logger = logging.getLogger(__name__)


def path_matches(path: str, patterns: Sequence[str]) -> bool:
    """Check whether a path equals a pattern or lies beneath it."""
    if not patterns:
        return True
    for pattern in patterns:
        prefix = pattern.rstrip("/")
        if not prefix or path == prefix or path.startswith(prefix + "/"):
            return True
    return False


class DiffEngine:
    """Accumulates change events and renders them on flush."""

    def __init__(
        self,
        sink: BinaryIO,
        reverse: bool = False,
        output_mode: str = PATCH_OUTPUT,
        store: Optional[GitObjectStore] = None,
    ):
        """Initialize with the output sink and rendering mode."""
        self.sink = sink
        self.reverse = reverse
        self.output_mode = output_mode
        self.store = store
        self.queue: List[FilePair] = []

        if output_mode == PATCH_OUTPUT:
            self.renderer = PatchRenderer(store)
        else:
            self.renderer = RawRenderer(output_mode)

    def add(self, mode: int, object_id: bytes, path: str) -> None:
        """Queue an added entry (a removal when reversed)."""
        if self.reverse:
            pair = FilePair("D", old_path=path, old_mode=mode, old_id=object_id)
        else:
            pair = FilePair("A", new_path=path, new_mode=mode, new_id=object_id)
        self.queue.append(pair)

    def remove(self, mode: int, object_id: bytes, path: str) -> None:
        """Queue a removed entry (an addition when reversed)."""
        if self.reverse:
            pair = FilePair("A", new_path=path, new_mode=mode, new_id=object_id)
        else:
            pair = FilePair("D", old_path=path, old_mode=mode, old_id=object_id)
        self.queue.append(pair)

    def change(
        self,
        old_mode: int,
        new_mode: int,
        old_id: bytes,
        new_id: bytes,
        path: str,
    ) -> None:
        """Queue an in-place modification."""
        if self.reverse:
            old_mode, new_mode = new_mode, old_mode
            old_id, new_id = new_id, old_id
        self.queue.append(
            FilePair(
                "M",
                old_path=path,
                new_path=path,
                old_mode=old_mode,
                new_mode=new_mode,
                old_id=old_id,
                new_id=new_id,
            )
        )

    def unmerge(self, raw_tail: str) -> None:
        """Queue an unmerged entry."""
        self.queue.append(FilePair("U", raw_tail=raw_tail))

    def similarity(self, src: FilePair, dst: FilePair) -> int:
        """Similarity percentage between the old side of src and the new side of dst."""
        if src.old_id == dst.new_id:
            return 100
        if self.store is None:
            return 0

        old_lines = self.store.read_blob(src.old_id).splitlines(keepends=True)
        new_lines = self.store.read_blob(dst.new_id).splitlines(keepends=True)
        if not old_lines and not new_lines:
            return 100
        matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)
        return int(matcher.ratio() * 100)

    def detect_rename(self, mode: RenameMode, score: int) -> None:
        """Pair added entries with deleted (and, for copies, modified) sources."""
        if mode is RenameMode.OFF:
            return

        allowed = ("D", "M") if mode is RenameMode.COPY else ("D",)
        sources = [
            p for p in self.queue
            if p.status in allowed and not is_directory_mode(p.old_mode)
        ]
        uses: Dict[int, int] = {}
        replaced: Dict[int, FilePair] = {}

        for dst in self.queue:
            if dst.status != "A" or is_directory_mode(dst.new_mode):
                continue

            best: Optional[FilePair] = None
            best_score = -1
            for src in sources:
                if mode is RenameMode.RENAME and uses.get(id(src)):
                    continue
                candidate = self.similarity(src, dst)
                if candidate >= score and candidate > best_score:
                    best, best_score = src, candidate
            if best is None:
                continue

            used_before = uses.get(id(best), 0)
            uses[id(best)] = used_before + 1
            status = "R" if best.status == "D" and not used_before else "C"
            replaced[id(dst)] = FilePair(
                status,
                old_path=best.old_path,
                new_path=dst.new_path,
                old_mode=best.old_mode,
                new_mode=dst.new_mode,
                old_id=best.old_id,
                new_id=dst.new_id,
                score=best_score,
            )

        consumed = {key for key, count in uses.items() if count}
        queue = []
        for pair in self.queue:
            if pair.status == "D" and id(pair) in consumed:
                continue
            queue.append(replaced.get(id(pair), pair))
        self.queue = queue

        logger.debug(
            "Rename detection finished",
            extra={"mode": mode.value, "score": score, "pairs": len(replaced)},
        )

    def _side_content(self, object_id: bytes, mode: int, present: bool) -> bytes:
        if not present or is_directory_mode(mode) or self.store is None:
            return b""
        return self.store.read_blob(object_id)

    def pickaxe(self, needle: str) -> None:
        """Keep only pairs that change how often ``needle`` occurs."""
        encoded = needle.encode("utf-8", errors="surrogateescape")
        kept = []
        for pair in self.queue:
            if pair.status == "U":
                kept.append(pair)
                continue
            old = self._side_content(pair.old_id, pair.old_mode, pair.has_old_side)
            new = self._side_content(pair.new_id, pair.new_mode, pair.has_new_side)
            if old.count(encoded) != new.count(encoded):
                kept.append(pair)

        logger.debug(
            "Pickaxe filter applied",
            extra={"before": len(self.queue), "after": len(kept)},
        )
        self.queue = kept

    def flush(self, paths: Sequence[str] = ()) -> None:
        """Render queued pairs matching ``paths`` and empty the queue."""
        rendered = 0
        for pair in self.queue:
            if not any(path_matches(p, paths) for p in pair.paths):
                continue
            self.sink.write(self.renderer.render(pair).encode("utf-8", errors="surrogateescape"))
            rendered += 1

        if self.queue:
            logger.debug(
                "Flushed diff queue",
                extra={"queued": len(self.queue), "rendered": rendered},
            )
        self.queue = []
