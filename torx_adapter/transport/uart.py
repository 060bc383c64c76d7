# torx_adapter/transport/uart.py
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

import serial
from serial import SerialException

from .base import Transport
from .errors import TransportIOError, TransportOpenError


class UARTTransport(Transport):
    """
    SUT running on a target board, reached over a serial line via pyserial.

    A serial line has no end-of-output: read(n) returns b"" on every read timeout
    and a port that disappears surfaces as TransportIOError.
    """

    driver = "uart"

    def __init__(self, port: str, baudrate: int = 115200, timeout: float = 0.05):
        self.port = port
        self.baudrate = int(baudrate)
        self.timeout = float(timeout)
        self.ser: Optional[serial.Serial] = None

    def describe(self) -> str:
        return f"{self.port}@{self.baudrate}"

    def open(self) -> None:
        try:
            self.ser = serial.Serial(
                self.port,
                baudrate=self.baudrate,
                timeout=self.timeout,
                write_timeout=self.timeout,
            )
            # Drop whatever the board printed before the test run started.
            self.ser.reset_input_buffer()
            self.ser.reset_output_buffer()
        except SerialException as e:
            self.ser = None
            raise TransportOpenError(f"Cannot open {self.describe()}: {e}") from None

    def close(self) -> None:
        ser, self.ser = self.ser, None
        if ser is not None:
            ser.close()

    def is_open(self) -> bool:
        return self.ser is not None and self.ser.is_open

    @contextmanager
    def _port(self, op: str) -> Iterator[serial.Serial]:
        ser = self.ser
        if ser is None:
            raise TransportIOError(f"{op} on {self.port}: port not open")
        try:
            yield ser
        except SerialException as e:
            self.ser = None
            raise TransportIOError(f"{op} on {self.port} failed: {e}") from None

    def read(self, n: int) -> bytes:
        with self._port("read") as ser:
            # Block (up to the timeout) for the first byte only, then take what is buffered.
            data = ser.read(1)
            if data and n > 1:
                waiting = min(ser.in_waiting, n - 1)
                if waiting:
                    data += ser.read(waiting)
            return data

    def write(self, data: bytes) -> int:
        with self._port("write") as ser:
            return ser.write(data)

    def flush(self) -> None:
        with self._port("flush") as ser:
            ser.flush()
