# torx_adapter/transport/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Transport(ABC):
    """
    Byte channel to the system under test.

    Contract:
      - open() connects to (or spawns) the SUT and raises TransportOpenError on failure.
      - read(n) waits at most the transport's own read timeout and returns 1..n bytes,
        or b"" when nothing arrived. End of the SUT's output is not an empty read:
        it raises TransportEOFError.
      - send(data) writes all of data and flushes it; stimuli are never left buffered.
    """

    #: Driver key under which the registry exposes this transport.
    driver: str = ""

    @abstractmethod
    def open(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...

    @abstractmethod
    def read(self, n: int) -> bytes: ...

    @abstractmethod
    def write(self, data: bytes) -> int: ...

    @abstractmethod
    def flush(self) -> None: ...

    @abstractmethod
    def describe(self) -> str:
        """Endpoint for logs and error details (SUT command line, serial port, ...)."""

    def send(self, data: bytes) -> None:
        self.write(data)
        self.flush()

    def __enter__(self) -> "Transport":
        self.open()
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()
