# torx_adapter/runtime/gateway.py
from __future__ import annotations

import logging
import threading
from typing import Optional

from torx_adapter.core.errors import GatewayStartError
from torx_adapter.interfaces.observation_sink import ObservationSink
from torx_adapter.model.codec import EncodeError, LabelCodec
from torx_adapter.transport.base import Transport
from torx_adapter.transport.errors import TransportError

from .readers import StderrReader, SutReader


class CodecGateway:
    """
    StimulusGateway for SUTs whose interactions map one-to-one onto wire values.

    Responsibilities:
      - open/close the SUT transport
      - encode stimuli through the codec and write them
      - run the reader threads that turn SUT output into observations
      - translate low-level failures into operator-safe errors or a False result
    """

    def __init__(
        self,
        transport: Transport,
        codec: LabelCodec,
        *,
        join_timeout_s: float = 1.0,
        logger: Optional[logging.Logger] = None,
    ):
        self.transport = transport
        self.codec = codec
        self.join_timeout_s = float(join_timeout_s)
        self.ready = threading.Event()

        self._log = logger or logging.getLogger(__name__)
        self._reader: Optional[SutReader] = None
        self._stderr_reader: Optional[StderrReader] = None
        self._write_lock = threading.Lock()
        self._stop_lock = threading.Lock()
        self._stopped = False

    @property
    def is_started(self) -> bool:
        return self._reader is not None

    def start(self, sink: ObservationSink) -> None:
        # Held until the readers run, so a concurrent stop() closes what was opened.
        with self._stop_lock:
            if self._stopped:
                self._log.info("GATEWAY_START_SKIPPED reason=already_stopped")
                return
            if self.is_started:
                return

            try:
                self.transport.open()
            except TransportError as e:
                self._log.exception("SUT_TRANSPORT_OPEN_FAILED")
                raise GatewayStartError(
                    "Could not reach the system under test.",
                    hint=str(e),
                    details={"driver": self.transport.driver, "endpoint": self.transport.describe()},
                ) from None

            self._reader = SutReader(self.transport, self.codec, sink, logger=self._log)
            self._reader.start()

            stderr = getattr(self.transport, "stderr", None)
            if stderr is not None:
                self._stderr_reader = StderrReader(stderr, logger=self._log)
                self._stderr_reader.start()

            self.ready.set()
        self._log.info(
            "GATEWAY_STARTED driver=%s endpoint=%s codec=%r",
            self.transport.driver, self.transport.describe(), self.codec,
        )

    def apply_stimulus(self, label: str) -> bool:
        try:
            raw = self.codec.encode(label)
        except EncodeError as e:
            self._log.warning("STIMULUS_ENCODE_FAILED label=%s reason=%s", label, e)
            return False

        self._log.debug("STIMULUS_WRITE label=%s raw=%s", label, raw.hex())
        try:
            with self._write_lock:
                self.transport.send(raw)
        except TransportError:
            self._log.exception("STIMULUS_WRITE_FAILED label=%s", label)
            return False
        return True

    def stop(self) -> None:
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True

        self._log.info("GATEWAY_STOPPING")
        if self._reader is not None:
            self._reader.stop()

        try:
            self.transport.close()
        except Exception:
            self._log.exception("SUT_TRANSPORT_CLOSE_FAILED")

        current = threading.current_thread()
        for worker in (self._reader, self._stderr_reader):
            if worker is not None and worker is not current:
                worker.join(timeout=self.join_timeout_s)
        self._log.info("GATEWAY_STOPPED")
