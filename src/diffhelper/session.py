"""Session controller: drives the read, decode and dispatch loop."""

import enum
import logging
from typing import BinaryIO, Iterator

from .config import SessionConfig
from .engine import DiffEngine
from .errors import DecodeError
from .rawline import Added, ChangeEvent, Modified, Removed, Unmerged, decode_line

logger = logging.getLogger(__name__)

_READ_SIZE = 64 * 1024


class SessionState(enum.Enum):
    CONFIGURING = "configuring"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    DONE = "done"


def read_records(stream: BinaryIO, terminator: bytes) -> Iterator[bytes]:
    """Yield records split on ``terminator`` only.

    Each record is yielded as soon as its terminator arrives, so input
    from a pipe that stays open is processed line by line. A final record
    without a terminator is still yielded.
    """
    if terminator == b"\n":
        for line in iter(stream.readline, b""):
            yield line[:-1] if line.endswith(terminator) else line
        return

    pending = bytearray()
    while True:
        chunk = stream.read1(_READ_SIZE)
        if not chunk:
            break
        # only the new bytes can hold a terminator
        scan = len(pending)
        pending += chunk
        start = 0
        end = pending.find(terminator, scan)
        while end >= 0:
            yield bytes(pending[start:end])
            start = end + len(terminator)
            end = pending.find(terminator, start)
        if start:
            del pending[:start]
    if pending:
        yield bytes(pending)


class DiffSession:
    """Feeds decoded change events from one input stream into a diff engine."""

    def __init__(self, config: SessionConfig, engine: DiffEngine):
        """Initialize with configuration and the engine that renders output."""
        self.config = config
        self.engine = engine
        self.state = SessionState.CONFIGURING
        self.decoded = 0
        self.passthrough = 0

    def dispatch(self, event: ChangeEvent) -> None:
        """Forward one event to the matching engine entry point."""
        if isinstance(event, Added):
            self.engine.add(event.mode, event.object_id, event.path)
        elif isinstance(event, Removed):
            self.engine.remove(event.mode, event.object_id, event.path)
        elif isinstance(event, Modified):
            self.engine.change(
                event.old_mode,
                event.new_mode,
                event.old_object_id,
                event.new_object_id,
                event.path,
            )
        elif isinstance(event, Unmerged):
            self.engine.unmerge(event.raw_tail)
        else:
            raise TypeError(f"Unknown change event: {event!r}")

    def pass_through(self, record: bytes) -> None:
        """Flush what is queued, then echo the record unchanged."""
        self.engine.flush(self.config.paths)
        self.engine.sink.write(record + self.config.terminator_bytes)
        self.engine.sink.flush()
        self.passthrough += 1

    def run(self, stream: BinaryIO) -> int:
        """Consume the stream to its end and render the result."""
        logger.info("Starting session", extra={"config": self.config.to_dict()})
        self.state = SessionState.STREAMING

        for record in read_records(stream, self.config.terminator_bytes):
            line = record.decode("utf-8", errors="surrogateescape")
            try:
                event = decode_line(line)
            except DecodeError as exc:
                logger.debug("Passing line through", extra={"reason": exc.reason})
                self.pass_through(record)
                continue
            self.dispatch(event)
            self.decoded += 1

        self.state = SessionState.FINALIZING
        if self.config.detect_renames:
            self.engine.detect_rename(self.config.rename_mode, self.config.rename_score)
        if self.config.pickaxe is not None:
            self.engine.pickaxe(self.config.pickaxe)
        self.engine.flush(self.config.paths)

        self.state = SessionState.DONE
        logger.info(
            "Session finished",
            extra={"decoded": self.decoded, "passthrough": self.passthrough},
        )
        return 0
