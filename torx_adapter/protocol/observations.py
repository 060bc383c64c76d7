# torx_adapter/protocol/observations.py
from __future__ import annotations

import queue
import time
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Observation:
    """A label reported by the SUT side, stamped when it was enqueued."""
    label: str
    timestamp: float


class ObservationQueue:
    """
    Unbounded FIFO between SUT reader threads (producers) and the engine (sole consumer).
    Producers never block.
    """

    def __init__(self) -> None:
        self._queue: "queue.Queue[Observation]" = queue.Queue()

    def enqueue(self, label: str) -> Observation:
        obs = Observation(str(label), time.time())
        self._queue.put_nowait(obs)
        return obs

    def poll_now(self) -> Optional[Observation]:
        try:
            return self._queue.get_nowait()
        except queue.Empty:
            return None

    def poll_within(self, timeout_s: float) -> Optional[Observation]:
        """Oldest observation, waiting up to timeout_s for one to arrive."""
        if timeout_s <= 0:
            return self.poll_now()
        try:
            return self._queue.get(timeout=timeout_s)
        except queue.Empty:
            return None

    def pending(self) -> int:
        return self._queue.qsize()
