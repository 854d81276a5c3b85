"""Tests for the session controller."""

import io
import os
import threading
from unittest.mock import MagicMock

import pytest

from diffhelper.config import NUL, RenameMode, SessionConfig
from diffhelper.engine import DiffEngine
from diffhelper.session import DiffSession, SessionState, read_records

from .conftest import NEW_SHA, OLD_SHA


class TinyReads(io.BytesIO):
    """Stream that returns at most three bytes per read."""

    def read1(self, size=-1):
        return super().read1(3)


class RecordingSink:
    """Sink that signals every flushed write."""

    def __init__(self):
        self.data = b""
        self.flushed = threading.Event()

    def write(self, data):
        self.data += data

    def flush(self):
        self.flushed.set()


class TestReadRecords:
    """Test record splitting."""

    def test_newline_records(self):
        stream = io.BytesIO(b"one\ntwo\n\nthree\n")
        assert list(read_records(stream, b"\n")) == [b"one", b"two", b"", b"three"]

    def test_trailing_record_without_terminator(self):
        stream = io.BytesIO(b"one\ntwo")
        assert list(read_records(stream, b"\n")) == [b"one", b"two"]

    def test_nul_records_keep_newlines(self):
        stream = io.BytesIO(b"a\nb\0c\0")
        assert list(read_records(stream, b"\0")) == [b"a\nb", b"c"]

    def test_records_spanning_reads(self):
        stream = TinyReads(b"first record\0second\0tail")
        assert list(read_records(stream, b"\0")) == [b"first record", b"second", b"tail"]

    def test_long_record_without_terminator(self):
        stream = TinyReads(b"x" * 1000 + b"\0y")
        assert list(read_records(stream, b"\0")) == [b"x" * 1000, b"y"]

    def test_empty_stream(self):
        assert list(read_records(io.BytesIO(b""), b"\n")) == []


class TestDiffSession:
    """Test the read, decode and dispatch loop."""

    def _session(self, **kwargs):
        config = SessionConfig(patch_mode=False, **kwargs)
        sink = io.BytesIO()
        engine = DiffEngine(sink, reverse=config.reverse, output_mode=config.output_mode)
        return DiffSession(config, engine), sink

    def test_dispatch_to_engine_entry_points(self):
        engine = MagicMock()
        session = DiffSession(SessionConfig(), engine)
        stream = io.BytesIO(
            (
                f"+100644 blob {OLD_SHA} a\n"
                f"-100755 blob {NEW_SHA} b\n"
                f"*100644->100644 blob {OLD_SHA}->{NEW_SHA} c\n"
                "U tail\n"
            ).encode()
        )

        assert session.run(stream) == 0

        old, new = bytes.fromhex(OLD_SHA), bytes.fromhex(NEW_SHA)
        engine.add.assert_called_once_with(0o100644, old, "a")
        engine.remove.assert_called_once_with(0o100755, new, "b")
        engine.change.assert_called_once_with(0o100644, 0o100644, old, new, "c")
        engine.unmerge.assert_called_once_with(" tail")
        engine.detect_rename.assert_not_called()
        engine.pickaxe.assert_not_called()
        engine.flush.assert_called_once_with(())
        assert session.decoded == 4
        assert session.passthrough == 0
        assert session.state is SessionState.DONE

    def test_passthrough_preserves_order(self):
        """Queued events are flushed before an undecodable line is echoed."""
        session, sink = self._session()
        stream = io.BytesIO(
            (
                f"+100644 blob {OLD_SHA}\ta\n"
                "garbage not a diff line\n"
                f"+100644 blob {NEW_SHA}\tb\n"
            ).encode()
        )

        session.run(stream)

        assert sink.getvalue().decode().splitlines() == [
            f"+100644 blob {OLD_SHA}\ta",
            "garbage not a diff line",
            f"+100644 blob {NEW_SHA}\tb",
        ]
        assert session.decoded == 2
        assert session.passthrough == 1

    def test_passthrough_is_byte_exact(self):
        session, sink = self._session()
        session.run(io.BytesIO(b"\xff\xfe not utf-8\r\n"))
        assert sink.getvalue() == b"\xff\xfe not utf-8\r\n"

    def test_passthrough_uses_nul(self):
        session, sink = self._session(line_terminator=NUL)
        session.run(io.BytesIO(b"one\ntwo\0"))
        assert sink.getvalue() == b"one\ntwo\0"

    def test_finalization_order(self):
        """Rename detection runs before pickaxe, and both before the final flush."""
        engine = MagicMock()
        config = SessionConfig(
            rename_mode=RenameMode.COPY,
            rename_score=90,
            pickaxe="needle",
            paths=("src",),
        )

        DiffSession(config, engine).run(io.BytesIO(b""))

        assert [c[0] for c in engine.method_calls] == ["detect_rename", "pickaxe", "flush"]
        engine.detect_rename.assert_called_once_with(RenameMode.COPY, 90)
        engine.pickaxe.assert_called_once_with("needle")
        engine.flush.assert_called_once_with(("src",))

    def test_interim_flush_uses_paths(self):
        engine = MagicMock()
        config = SessionConfig(paths=("docs",))
        DiffSession(config, engine).run(io.BytesIO(b"not a change\n"))

        assert engine.flush.call_count == 2
        engine.sink.write.assert_called_once_with(b"not a change\n")

    def test_dispatch_rejects_unknown_events(self):
        session, _ = self._session()
        with pytest.raises(TypeError):
            session.dispatch(object())


class TestOpenPipe:
    """Records on a pipe are handled before the writer closes it."""

    @pytest.mark.parametrize("terminator", [b"\n", b"\0"])
    def test_passthrough_before_end_of_input(self, terminator):
        config = SessionConfig(
            patch_mode=False,
            line_terminator=terminator.decode(),
        )
        sink = RecordingSink()
        session = DiffSession(config, DiffEngine(sink, output_mode=config.output_mode))

        read_fd, write_fd = os.pipe()
        with os.fdopen(read_fd, "rb") as stream:
            worker = threading.Thread(target=session.run, args=(stream,))
            worker.start()
            try:
                os.write(write_fd, b"garbage not a diff line" + terminator)
                assert sink.flushed.wait(timeout=5)
                assert sink.data == b"garbage not a diff line" + terminator
                assert session.state is SessionState.STREAMING
            finally:
                os.close(write_fd)
                worker.join(timeout=5)

        assert session.state is SessionState.DONE
        assert session.passthrough == 1
