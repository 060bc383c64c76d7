# torx_adapter/runtime/readers.py
from __future__ import annotations

import logging
import threading
from typing import IO, Optional

from torx_adapter.interfaces.observation_sink import ObservationSink
from torx_adapter.model.codec import LabelCodec
from torx_adapter.transport.base import Transport
from torx_adapter.transport.errors import TransportEOFError, TransportError


class SutReader(threading.Thread):
    """
    Reads the SUT's output, decodes it into labels and hands them to the sink.

    End of the SUT's output (or a failing transport) is reported once as end-of-test,
    unless the reader was stopped first.
    """

    def __init__(
        self,
        transport: Transport,
        codec: LabelCodec,
        sink: ObservationSink,
        *,
        read_size: int = 256,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(name="torx-sut-reader", daemon=True)
        self.transport = transport
        self.codec = codec
        self.sink = sink
        self.read_size = int(read_size)
        self._log = logger or logging.getLogger(__name__)
        self._stop_event = threading.Event()
        self._buffer = bytearray()

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                data = self.transport.read(self.read_size)
            except TransportEOFError:
                self._log.info("SUT_OUTPUT_EOF returncode=%s", getattr(self.transport, "returncode", None))
                break
            except TransportError:
                if not self._stop_event.is_set():
                    self._log.exception("SUT_READ_FAILED")
                break

            if data:
                self._feed(data)

        if not self._stop_event.is_set():
            self.sink.notify_end_of_test()

    def _feed(self, data: bytes) -> None:
        self._buffer.extend(data)
        for frame in self.codec.split(self._buffer):
            label = self.codec.decode(frame)
            if label is None:
                self._log.warning("SUT_UNEXPECTED_OUTPUT frame=%s", frame.hex())
                continue
            self.sink.enqueue_observation(label)

    def stop(self) -> None:
        self._stop_event.set()


class StderrReader(threading.Thread):
    """Forwards the SUT's diagnostic stream to the log, one line at a time."""

    def __init__(self, stream: IO[bytes], *, logger: Optional[logging.Logger] = None):
        super().__init__(name="torx-sut-stderr", daemon=True)
        self.stream = stream
        self._log = logger or logging.getLogger(__name__)

    def run(self) -> None:
        while True:
            try:
                line = self.stream.readline()
            except (OSError, ValueError):
                break
            if not line:
                self._log.debug("SUT_STDERR_EOF")
                break
            text = line.decode("utf-8", errors="replace").rstrip("\r\n")
            if text:
                self._log.info("SUT_STDERR %s", text)
