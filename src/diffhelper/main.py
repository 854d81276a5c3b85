"""Main CLI entry point for diffhelper."""

import argparse
import logging
import sys
from typing import BinaryIO, List, Optional, Sequence, Tuple

from .config import (
    DEFAULT_SIMILARITY_SCORE,
    MAX_SIMILARITY_SCORE,
    NEWLINE,
    NUL,
    RenameMode,
    SessionConfig,
)
from .engine import DiffEngine
from .errors import DiffHelperError
from .logging_utils import configure_logging
from .objects import GitObjectStore
from .session import DiffSession
from .settings import get_git_settings

logger = logging.getLogger(__name__)

USAGE = "diffhelper [-z] [-R] [-M] [-C] [-S<string>] paths..."


def parse_score_option(value: str) -> int:
    """Parse the digits trailing -M/-C as a similarity percentage.

    An empty value selects DEFAULT_SIMILARITY_SCORE (50).
    """
    if value == "":
        return DEFAULT_SIMILARITY_SCORE
    if not value.isascii() or not value.isdigit():
        raise argparse.ArgumentTypeError(f"invalid similarity score: {value!r}")
    score = int(value)
    if score > MAX_SIMILARITY_SCORE:
        raise argparse.ArgumentTypeError(
            f"similarity score must be between 0 and {MAX_SIMILARITY_SCORE}"
        )
    return score


class RenameAction(argparse.Action):
    """Records the detection mode and score of the last -M or -C seen."""

    def __init__(self, option_strings, dest, mode: RenameMode = RenameMode.RENAME, **kwargs):
        super().__init__(option_strings, dest, **kwargs)
        self.mode = mode

    def __call__(self, parser, namespace, values, option_string=None):
        namespace.rename_mode = self.mode
        namespace.rename_score = values


def split_arguments(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split leading option arguments from trailing path patterns."""
    index = 0
    while index < len(argv) and argv[index].startswith("-"):
        index += 1
    return list(argv[:index]), list(argv[index:])


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="diffhelper",
        usage=USAGE,
        description="Translate raw change lines on stdin into diff output",
        add_help=False,
    )
    parser.set_defaults(
        rename_mode=RenameMode.OFF,
        rename_score=DEFAULT_SIMILARITY_SCORE,
    )

    parser.add_argument(
        "-z",
        dest="line_terminator",
        action="store_const",
        const=NUL,
        default=NEWLINE,
        help="Use NUL instead of newline to terminate input and output records",
    )
    parser.add_argument(
        "-R",
        dest="reverse",
        action="store_true",
        help="Swap the two sides of every change",
    )
    parser.add_argument(
        "-M",
        dest="rename_score",
        action=RenameAction,
        mode=RenameMode.RENAME,
        nargs="?",
        const=DEFAULT_SIMILARITY_SCORE,
        type=parse_score_option,
        help="Detect renames, optionally with a minimum similarity percentage",
    )
    parser.add_argument(
        "-C",
        dest="rename_score",
        action=RenameAction,
        mode=RenameMode.COPY,
        nargs="?",
        const=DEFAULT_SIMILARITY_SCORE,
        type=parse_score_option,
        help="Detect renames and copies, optionally with a minimum similarity percentage",
    )
    parser.add_argument(
        "-S",
        dest="pickaxe",
        help="Only show changes that add or remove the given string",
    )
    # hidden from the usage line
    parser.add_argument(
        "-p",
        dest="patch_mode",
        action="store_false",
        help=argparse.SUPPRESS,
    )

    return parser


def create_config(argv: Sequence[str]) -> SessionConfig:
    """Create configuration from command line arguments.

    Exits with status 2 and the usage line on any invalid option.
    """
    options, paths = split_arguments(argv)
    parser = create_parser()
    args = parser.parse_args(options)

    if args.pickaxe is not None and not args.pickaxe:
        parser.error("-S requires a non-empty string")

    return SessionConfig(
        reverse=args.reverse,
        line_terminator=args.line_terminator,
        rename_mode=args.rename_mode,
        rename_score=args.rename_score,
        patch_mode=args.patch_mode,
        pickaxe=args.pickaxe,
        paths=tuple(paths),
    )


def create_session(
    config: SessionConfig,
    sink: BinaryIO,
    store: Optional[GitObjectStore] = None,
) -> DiffSession:
    """Set up the engine and session for a configuration."""
    engine = DiffEngine(
        sink,
        reverse=config.reverse,
        output_mode=config.output_mode,
        store=store,
    )
    return DiffSession(config, engine)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    configure_logging(default="WARNING")
    if argv is None:
        argv = sys.argv[1:]

    config = create_config(argv)

    git_dir, timeout = get_git_settings()
    store = GitObjectStore(git_dir=git_dir, timeout=timeout)
    session = create_session(config, sys.stdout.buffer, store)

    try:
        return session.run(sys.stdin.buffer)
    except DiffHelperError as e:
        logger.error("Translation failed", extra={"code": e.code, "details": e.details})
        sys.stdout.buffer.flush()
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    finally:
        sys.stdout.buffer.flush()


if __name__ == "__main__":
    sys.exit(main())
