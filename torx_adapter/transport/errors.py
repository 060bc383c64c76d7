# torx_adapter/transport/errors.py
from __future__ import annotations


class TransportError(Exception):
    """Failure on the byte channel between the adapter and the SUT."""


class TransportOpenError(TransportError):
    """The SUT could not be spawned or its port could not be opened."""


class TransportIOError(TransportError):
    """A read, write or flush towards an opened SUT failed."""


class TransportEOFError(TransportIOError):
    """The SUT closed its output; no further observations can arrive."""
