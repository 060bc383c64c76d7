# torx_adapter/protocol/engine.py
from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable, Dict, Optional, Protocol as TypingProtocol

from torx_adapter.interfaces.stimulus_gateway import StimulusGateway

from .core import defs
from .core import Command, CommandParser, Keyword
from .core.defs import EVENT_FIELD
from .core.parser import LineSource
from .errors import UnhandledCommand
from .observations import ObservationQueue
from ._internal.command_reader import END_OF_INPUT, CommandReader


class LineSink(TypingProtocol):
    """Minimal text output interface for ProtocolEngine."""
    def write(self, data: str) -> int: ...
    def flush(self) -> None: ...


class EngineState(str, Enum):
    AWAITING_HANDSHAKE = "awaiting_handshake"
    ACTIVE = "active"
    STOPPED = "stopped"


class ProtocolEngine:
    """
    Request/response loop of the TorX adapter protocol.

    Reads commands from the test tool, answers each with exactly one line, applies
    stimuli through the gateway and reports SUT observations or quiescence.
    Also serves as the gateway's ObservationSink.
    """

    def __init__(
        self,
        gateway: StimulusGateway,
        *,
        timeout_s: float,
        input_stream: LineSource,
        output_stream: LineSink,
        ready: Optional[threading.Event] = None,
        handshake_wait_s: float = 10.0,
        owns_streams: bool = False,
        poll_interval_s: float = 0.05,
        parser: Optional[CommandParser] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.gateway = gateway
        self.timeout_s = float(timeout_s)
        self.handshake_wait_s = float(handshake_wait_s)
        self.poll_interval_s = float(poll_interval_s)

        self._in = input_stream
        self._out = output_stream
        self._owns_streams = owns_streams
        self._ready = ready

        self._log = logger or logging.getLogger(__name__)
        self._parser = parser or CommandParser(logger=self._log)

        self._observations = ObservationQueue()
        self._eot = threading.Event()
        self._state = EngineState.AWAITING_HANDSHAKE
        self.last_interaction = time.monotonic()

        self._reader: Optional[CommandReader] = None
        self._thread: Optional[threading.Thread] = None
        self._running = False

        self._stop_lock = threading.Lock()
        self._gateway_stopped = False

        self._handlers: Dict[str, Callable[[Command], str]] = {
            Keyword.IOKIND.value: self._on_handshake,
            Keyword.INPUT.value: self._on_input,
            Keyword.OUTPUT.value: self._on_output,
            Keyword.QUIT.value: self._on_quit,
        }

    # ---------------- State ----------------
    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def end_of_test(self) -> bool:
        return self._eot.is_set()

    @property
    def observations(self) -> ObservationQueue:
        return self._observations

    # ---------------- ObservationSink ----------------
    def enqueue_observation(self, label: str) -> None:
        obs = self._observations.enqueue(label)
        self._log.debug("OBSERVATION_ENQUEUED label=%s pending=%d", obs.label, self._observations.pending())

    def notify_end_of_test(self) -> None:
        self._log.info("END_OF_TEST_NOTIFIED")
        self._eot.set()
        if not self._running:
            # Nobody will leave the loop to do it.
            self._stop_gateway()

    # ---------------- Command handling ----------------
    def handle(self, cmd: Command) -> str:
        """Compute the single response line for one command. Never raises."""
        try:
            handler = self._handlers.get(cmd.keyword)
            if handler is None:
                raise UnhandledCommand(cmd.keyword)
            if self._state is EngineState.AWAITING_HANDSHAKE and cmd.keyword != Keyword.IOKIND:
                self._log.warning("COMMAND_BEFORE_HANDSHAKE kw=%s", cmd.keyword)
            return handler(cmd)
        except UnhandledCommand:
            self._log.warning("COMMAND_UNHANDLED kw=%s", cmd.keyword)
            return defs.A_ERROR
        except Exception:
            self._log.exception("COMMAND_HANDLER_FAILED kw=%s", cmd.keyword)
            return defs.A_ERROR

    def _on_handshake(self, cmd: Command) -> str:
        if self._ready is not None and not self._ready.is_set():
            self._log.info("HANDSHAKE_WAITING_FOR_GATEWAY max_s=%.1f", self.handshake_wait_s)
            if not self._ready.wait(self.handshake_wait_s):
                self._log.warning("HANDSHAKE_GATEWAY_NOT_READY waited_s=%.1f", self.handshake_wait_s)
        self._state = EngineState.ACTIVE
        return defs.A_IOKIND

    def _on_input(self, cmd: Command) -> str:
        # The SUT's own pending output goes first.
        obs = self._observations.poll_now()
        if obs is not None:
            self._log.info("PENDING_OBSERVATION_DELIVERED label=%s", obs.label)
            return defs.output_event(obs.label)

        label = cmd.field(EVENT_FIELD)
        if label is None:
            self._log.warning("STIMULUS_MISSING_LABEL fields=%s", dict(cmd.fields))
            return defs.A_INPUT_ERROR

        try:
            applied = self.gateway.apply_stimulus(label)
        except Exception:
            self._log.exception("STIMULUS_APPLY_FAILED label=%s", label)
            return defs.A_INPUT_ERROR

        if not applied:
            self._log.warning("STIMULUS_NOT_APPLIED label=%s", label)
            return defs.A_INPUT_ERROR

        if isinstance(applied, str):
            label = applied
        self.last_interaction = time.monotonic()
        self._log.info("STIMULUS_APPLIED label=%s", label)
        return defs.input_ack(label)

    def _on_output(self, cmd: Command) -> str:
        elapsed = time.monotonic() - self.last_interaction
        remaining = max(0.0, self.timeout_s - elapsed)
        self._log.debug("WAITING_FOR_OBSERVATION remaining_ms=%d", int(remaining * 1000))

        obs = self._observations.poll_within(remaining)
        if obs is not None:
            self._log.info("OBSERVATION_DELIVERED label=%s", obs.label)
            return defs.output_event(obs.label)

        self._log.info("QUIESCENCE waited_ms=%d", int(remaining * 1000))
        return defs.quiescence()

    def _on_quit(self, cmd: Command) -> str:
        return defs.A_QUIT

    # ---------------- Loop ----------------
    def run(self) -> None:
        """Serve commands on the calling thread until quit, end-of-input or end-of-test."""
        if self._state is EngineState.STOPPED:
            self._log.warning("ENGINE_ALREADY_STOPPED")
            return
        self._running = True
        self._reader = CommandReader(self._parser, self._in)
        self._reader.start()
        self.last_interaction = time.monotonic()
        self._log.info("ENGINE_STARTED timeout_ms=%d", int(self.timeout_s * 1000))

        try:
            while True:
                cmd = self._next_command()
                if cmd is None:
                    break

                self._write(self.handle(cmd))

                if cmd.keyword == Keyword.QUIT:
                    self._log.info("QUIT_RECEIVED")
                    break
        finally:
            self._shutdown()

    def _next_command(self) -> Optional[Command]:
        assert self._reader is not None
        while not self._eot.is_set():
            item = self._reader.get(timeout=self.poll_interval_s)
            if item is None:
                continue
            if item is END_OF_INPUT:
                self._log.info("ENGINE_INPUT_CLOSED")
                return None
            return item

        self._log.info("ENGINE_END_OF_TEST_EXIT")
        return None

    def _write(self, line: str) -> None:
        try:
            self._out.write(line)
            self._out.flush()
        except Exception:
            self._log.exception("RESPONSE_WRITE_FAILED line=%r", line)

    def _shutdown(self) -> None:
        if self._reader is not None:
            self._reader.stop()

        if self._owns_streams:
            # Input stays open: the reader may still be blocked in readline().
            try:
                self._out.close()  # type: ignore[attr-defined]
            except Exception:
                self._log.exception("OUTPUT_CLOSE_FAILED")

        self._stop_gateway()
        self._state = EngineState.STOPPED
        self._running = False
        self._log.info("ENGINE_STOPPED")

    def _stop_gateway(self) -> None:
        with self._stop_lock:
            if self._gateway_stopped:
                return
            self._gateway_stopped = True

        try:
            self.gateway.stop()
        except Exception:
            self._log.exception("GATEWAY_STOP_FAILED")

    # ---------------- Thread ----------------
    def start(self) -> None:
        if self._state is EngineState.STOPPED:
            self._log.warning("ENGINE_ALREADY_STOPPED")
            return
        if self._thread is None or not self._thread.is_alive():
            self._thread = threading.Thread(target=self.run, name="torx-engine", daemon=True)
            self._thread.start()
            self._log.info("ENGINE_THREAD_STARTED")

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
