# torx_adapter/protocol/_internal/command_reader.py
from __future__ import annotations

import queue
import threading
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from torx_adapter.protocol.core import Command, CommandParser
    from torx_adapter.protocol.core.parser import LineSource


class _EndOfInput:
    def __repr__(self) -> str:
        return "END_OF_INPUT"


END_OF_INPUT = _EndOfInput()


class CommandReader(threading.Thread):
    """
    Thread that blocks on the test tool's input and hands parsed commands to the engine.

    The engine waits on get() in short slices, so it never depends on this thread
    returning from readline(). A reader left blocked at shutdown is simply abandoned.
    """

    def __init__(self, parser: "CommandParser", stream: "LineSource"):
        super().__init__(name="torx-command-reader", daemon=True)
        self.parser = parser
        self.stream = stream
        self._queue: "queue.Queue[Union[Command, _EndOfInput]]" = queue.Queue()
        self._stop_event = threading.Event()

    def run(self) -> None:
        while not self._stop_event.is_set():
            cmd = self.parser.read_command(self.stream)
            if cmd is None:
                break
            self._queue.put(cmd)
        self._queue.put(END_OF_INPUT)

    def get(self, timeout: float) -> "Optional[Union[Command, _EndOfInput]]":
        """Next command, END_OF_INPUT, or None when nothing arrived within timeout."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def stop(self) -> None:
        self._stop_event.set()
