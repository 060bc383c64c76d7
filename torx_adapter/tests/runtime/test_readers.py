from __future__ import annotations

import io
import logging
import threading

from torx_adapter.model.codec import LabelCodec
from torx_adapter.runtime.readers import StderrReader, SutReader
from torx_adapter.transport.errors import TransportEOFError, TransportIOError


class ScriptedTransport:
    """Returns the scripted chunks, then raises the final error (EOF by default)."""
    def __init__(self, chunks, end: Exception | None = None):
        self.chunks = list(chunks)
        self.end = end or TransportEOFError("closed")

    def read(self, n: int) -> bytes:
        if self.chunks:
            return self.chunks.pop(0)
        raise self.end


class RecordingSink:
    def __init__(self):
        self.labels: list[str] = []
        self.eot_calls = 0

    def enqueue_observation(self, label: str) -> None:
        self.labels.append(label)

    def notify_end_of_test(self) -> None:
        self.eot_calls += 1


def _fwgc() -> LabelCodec:
    return LabelCodec("byte", {}, {b"\x01": "done!", b"\x02": "eaten!", b"\x04": "retry!"})


def test_decodes_frames_in_order_then_reports_end_of_test():
    sink = RecordingSink()
    reader = SutReader(ScriptedTransport([b"\x02", b"", b"\x04\x01"]), _fwgc(), sink)

    reader.start()
    reader.join(timeout=2.0)

    assert not reader.is_alive()
    assert sink.labels == ["eaten!", "retry!", "done!"]
    assert sink.eot_calls == 1


def test_unknown_frames_are_dropped_and_logged(caplog):
    sink = RecordingSink()
    reader = SutReader(ScriptedTransport([b"\x7f\x01"]), _fwgc(), sink)

    with caplog.at_level(logging.WARNING):
        reader.run()

    assert sink.labels == ["done!"]
    assert "SUT_UNEXPECTED_OUTPUT" in caplog.text


def test_line_framing_reassembles_split_lines():
    codec = LabelCodec("line", {}, {b"TEA": "tea!", b"COFFEE": "coffee!"})
    sink = RecordingSink()

    SutReader(ScriptedTransport([b"TE", b"A\nCOF", b"FEE\n"]), codec, sink).run()

    assert sink.labels == ["tea!", "coffee!"]


def test_transport_failure_also_ends_the_test():
    sink = RecordingSink()
    SutReader(ScriptedTransport([], end=TransportIOError("port gone")), _fwgc(), sink).run()
    assert sink.eot_calls == 1


def test_stopped_reader_does_not_report_end_of_test():
    sink = RecordingSink()
    reader = SutReader(ScriptedTransport([b"\x01"]), _fwgc(), sink)
    reader.stop()

    reader.run()

    assert sink.labels == []
    assert sink.eot_calls == 0


def test_stop_during_blocked_read_suppresses_end_of_test():
    release = threading.Event()
    sink = RecordingSink()

    class BlockingTransport:
        def read(self, n):
            release.wait(2.0)
            raise TransportIOError("closed underneath")

    reader = SutReader(BlockingTransport(), _fwgc(), sink)
    reader.start()
    reader.stop()
    release.set()
    reader.join(timeout=2.0)

    assert sink.eot_calls == 0


def test_stderr_lines_go_to_the_log(caplog):
    stream = io.BytesIO(b"booting\r\n\nready\n")

    with caplog.at_level(logging.INFO):
        StderrReader(stream).run()

    messages = [r.getMessage() for r in caplog.records if r.getMessage().startswith("SUT_STDERR ")]
    assert messages == ["SUT_STDERR booting", "SUT_STDERR ready"]


def test_end_of_output_logs_sut_exit_code(caplog):
    transport = ScriptedTransport([])
    transport.returncode = 3

    with caplog.at_level(logging.INFO):
        SutReader(transport, _fwgc(), RecordingSink()).run()

    assert "SUT_OUTPUT_EOF returncode=3" in caplog.text
