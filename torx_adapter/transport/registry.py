# torx_adapter/transport/registry.py
from __future__ import annotations

from typing import Dict, Mapping, Type

from .base import Transport
from .errors import TransportError
from .process import ProcessTransport
from .uart import UARTTransport


class TransportDriverRegistry:
    """
    Driver key (as given on the command line) -> SUT transport class.

    Keys are case-insensitive. Creating a transport never opens it; the gateway
    does that once the engine is ready to receive observations.
    """

    def __init__(self, drivers: Mapping[str, Type[Transport]]):
        self._drivers: Dict[str, Type[Transport]] = {}
        for key, transport_cls in drivers.items():
            self.register(key, transport_cls)

    @classmethod
    def default(cls) -> "TransportDriverRegistry":
        return cls({t.driver: t for t in (ProcessTransport, UARTTransport)})

    def register(self, key: str, transport_cls: Type[Transport]) -> None:
        key = key.lower()
        current = self._drivers.get(key)
        if current is not None and current is not transport_cls:
            raise TransportError(f"Driver '{key}' already registered to {current.__name__}")
        self._drivers[key] = transport_cls

    def drivers(self) -> list[str]:
        return sorted(self._drivers)

    def has(self, driver: str) -> bool:
        return driver.lower() in self._drivers

    def get_class(self, driver: str) -> Type[Transport]:
        try:
            return self._drivers[driver.lower()]
        except KeyError:
            known = ", ".join(self.drivers()) or "none"
            raise TransportError(f"Unknown SUT driver '{driver}' (known: {known})") from None

    def create(self, driver: str, **params) -> Transport:
        return self.get_class(driver)(**params)
