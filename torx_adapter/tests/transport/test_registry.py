from __future__ import annotations

import pytest

from torx_adapter.transport.base import Transport
from torx_adapter.transport.errors import TransportError
from torx_adapter.transport.process import ProcessTransport
from torx_adapter.transport.registry import TransportDriverRegistry
from torx_adapter.transport.uart import UARTTransport


class DummyTransport(Transport):
    driver = "dummy"

    def __init__(self, x: int = 0):
        self.x = x

    def open(self) -> None:
        pass

    def close(self) -> None:
        pass

    def read(self, n: int) -> bytes:
        return b""

    def write(self, data: bytes) -> int:
        return len(data)

    def flush(self) -> None:
        pass

    def describe(self) -> str:
        return f"dummy:{self.x}"


def test_default_registry_has_process_and_uart():
    reg = TransportDriverRegistry.default()

    assert reg.drivers() == ["process", "uart"]
    assert reg.get_class("process") is ProcessTransport
    assert reg.get_class("uart") is UARTTransport


def test_driver_keys_are_case_insensitive():
    reg = TransportDriverRegistry({"Dummy": DummyTransport})

    assert reg.has("dummy")
    assert reg.has("DUMMY")
    assert reg.get_class("dUmMy") is DummyTransport


def test_create_passes_params_without_opening():
    reg = TransportDriverRegistry({"dummy": DummyTransport})

    t = reg.create("dummy", x=7)

    assert isinstance(t, DummyTransport)
    assert t.x == 7


def test_unknown_driver_raises_transport_error():
    reg = TransportDriverRegistry({"dummy": DummyTransport})

    assert not reg.has("tcp")
    with pytest.raises(TransportError):
        reg.create("tcp")


def test_create_process_driver_requires_argv():
    with pytest.raises(ValueError):
        TransportDriverRegistry.default().create("process", argv=[])


def test_register_adds_driver_and_rejects_conflicts():
    reg = TransportDriverRegistry.default()

    reg.register("Dummy", DummyTransport)
    reg.register("dummy", DummyTransport)

    assert reg.drivers() == ["dummy", "process", "uart"]
    with pytest.raises(TransportError):
        reg.register("uart", DummyTransport)


def test_unknown_driver_message_lists_known_drivers():
    with pytest.raises(TransportError, match="known: process, uart"):
        TransportDriverRegistry.default().get_class("tcp")


def test_transports_describe_their_endpoint():
    assert ProcessTransport(["./fwgc", "--seed", "1 2"]).describe() == "./fwgc --seed '1 2'"
    assert UARTTransport("/dev/ttyUSB0", baudrate=9600).describe() == "/dev/ttyUSB0@9600"
