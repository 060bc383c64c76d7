# torx_adapter/interfaces/observation_sink.py
from typing import Protocol


class ObservationSink(Protocol):
    def enqueue_observation(self, label: str) -> None: ...
    def notify_end_of_test(self) -> None: ...
