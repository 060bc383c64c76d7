# torx_adapter/interfaces/stimulus_gateway.py
from __future__ import annotations

from typing import Protocol, Union


class StimulusGateway(Protocol):
    """
    SUT side of the adapter, as seen by the protocol engine.

    apply_stimulus returns True when the label was applied as requested, a
    non-empty str when a different label was applied, or False when nothing
    was applied.
    """
    def apply_stimulus(self, label: str) -> Union[bool, str]: ...
    def stop(self) -> None: ...
