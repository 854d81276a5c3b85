"""Session configuration for diffhelper."""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

NEWLINE = "\n"
NUL = "\0"

PATCH_OUTPUT = "patch"

# Similarity percentage used when -M or -C carries no number.
DEFAULT_SIMILARITY_SCORE = 50
MAX_SIMILARITY_SCORE = 100


class RenameMode(enum.Enum):
    """Rename/copy detection mode."""

    OFF = "off"
    RENAME = "rename"
    COPY = "copy"


@dataclass(frozen=True)
class SessionConfig:
    """Configuration for one translation session."""

    reverse: bool = False
    line_terminator: str = NEWLINE

    # Rename detection
    rename_mode: RenameMode = RenameMode.OFF
    rename_score: int = DEFAULT_SIMILARITY_SCORE  # percentage

    # Output options
    patch_mode: bool = True
    pickaxe: Optional[str] = None

    # Path patterns restricting flushed output
    paths: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.line_terminator not in (NEWLINE, NUL):
            raise ValueError("line_terminator must be newline or NUL")
        if not (0 <= self.rename_score <= MAX_SIMILARITY_SCORE):
            raise ValueError("rename_score must be between 0 and 100")
        if self.pickaxe is not None and not self.pickaxe:
            raise ValueError("pickaxe string cannot be empty")

    @property
    def output_mode(self) -> str:
        """Patch output, or the terminator used for line-oriented records."""
        return PATCH_OUTPUT if self.patch_mode else self.line_terminator

    @property
    def terminator_bytes(self) -> bytes:
        return self.line_terminator.encode("ascii")

    @property
    def detect_renames(self) -> bool:
        return self.rename_mode is not RenameMode.OFF

    def to_dict(self) -> Dict[str, Any]:
        """Summarize the configuration for logging and API responses."""
        return {
            "reverse": self.reverse,
            "line_terminator": "NUL" if self.line_terminator == NUL else "LF",
            "rename_detection": {
                "mode": self.rename_mode.value,
                "score_pct": self.rename_score,
            },
            "output_mode": "patch" if self.patch_mode else "raw",
            "pickaxe": self.pickaxe,
            "paths": list(self.paths),
        }
