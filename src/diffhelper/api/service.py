"""Service layer for the diffhelper API."""

import io
import logging
from typing import Any, Dict, List, Optional

from ..config import NEWLINE, NUL, RenameMode, SessionConfig
from ..errors import DecodeError, DiffHelperError
from ..main import create_session
from ..objects import GitObjectStore
from ..rawline import decode_line
from ..settings import get_git_settings

logger = logging.getLogger(__name__)


def success_envelope(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Create success envelope around payload."""
    return {"ok": True, "data": payload}


def error_envelope(error: DiffHelperError) -> Dict[str, Any]:
    """Create error envelope from a known error."""
    return {"ok": False, "error": error.to_dict()}


class TranslateService:
    """Runs decoding and full translation sessions in memory."""

    def __init__(self, store: Optional[GitObjectStore] = None):
        """Initialize with the object store used for content lookups."""
        if store is None:
            git_dir, timeout = get_git_settings()
            store = GitObjectStore(git_dir=git_dir, timeout=timeout)
        self.store = store

    def decode_lines(self, lines: List[str]) -> Dict[str, Any]:
        """Decode each line, marking the ones that would pass through."""
        events = []
        for line in lines:
            try:
                events.append(decode_line(line).to_dict())
            except DecodeError:
                events.append({"kind": "passthrough", "line": line})

        logger.info(
            "Decoded lines",
            extra={
                "lines": len(lines),
                "passthrough": sum(1 for e in events if e["kind"] == "passthrough"),
            },
        )
        return success_envelope({"events": events})

    def translate(
        self,
        input_text: str,
        nul_terminated: bool = False,
        reverse: bool = False,
        rename_mode: str = "off",
        score: int = 50,
        patch: bool = False,
        pickaxe: Optional[str] = None,
        paths: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """Run a full session over ``input_text`` and return the rendered output."""
        config = SessionConfig(
            reverse=reverse,
            line_terminator=NUL if nul_terminated else NEWLINE,
            rename_mode=RenameMode(rename_mode),
            rename_score=score,
            patch_mode=patch,
            pickaxe=pickaxe,
            paths=tuple(paths or ()),
        )
        sink = io.BytesIO()
        session = create_session(config, sink, self.store)

        try:
            session.run(io.BytesIO(input_text.encode("utf-8", errors="surrogateescape")))
        except DiffHelperError as exc:
            logger.warning("Translation failed", extra={"code": exc.code})
            return error_envelope(exc)

        return success_envelope(
            {
                "config": config.to_dict(),
                "output": sink.getvalue().decode("utf-8", errors="replace"),
                "decoded": session.decoded,
                "passthrough": session.passthrough,
            }
        )
