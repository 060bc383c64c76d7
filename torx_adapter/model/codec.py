# torx_adapter/model/codec.py
from __future__ import annotations

from typing import Dict, List, Mapping, Optional

FRAMINGS = ("byte", "line")


class EncodeError(ValueError):
    """Raised when a model label has no wire value."""


class LabelCodec:
    """
    Static mapping between model labels and SUT wire values.

    Attributes:
        framing: "byte" (one byte per stimulus/observation) or "line" (one text line each).
        stimuli: label -> wire value sent to the SUT.
        observations: wire value read from the SUT -> label.
        encoding: text encoding used in line framing.
        passthrough: in line framing, report unmapped lines verbatim as labels.
    """

    def __init__(
        self,
        framing: str,
        stimuli: Mapping[str, bytes],
        observations: Mapping[bytes, str],
        *,
        encoding: str = "utf-8",
        passthrough: bool = False,
    ):
        if framing not in FRAMINGS:
            raise ValueError(f"Unknown framing '{framing}' (expected one of {FRAMINGS})")
        self.framing: str = framing
        self.stimuli: Dict[str, bytes] = dict(stimuli)
        self.observations: Dict[bytes, str] = dict(observations)
        self.encoding: str = encoding
        self.passthrough: bool = bool(passthrough)

    def encode(self, label: str) -> bytes:
        try:
            value = self.stimuli[label]
        except KeyError:
            raise EncodeError(f"Unknown label '{label}'") from None
        if self.framing == "line":
            return value + b"\n"
        return value

    def decode(self, frame: bytes) -> Optional[str]:
        label = self.observations.get(frame)
        if label is not None:
            return label
        if self.framing == "line" and self.passthrough:
            return frame.decode(self.encoding, errors="replace")
        return None

    def split(self, buffer: bytearray) -> List[bytes]:
        """Remove and return all complete frames from the head of buffer."""
        if self.framing == "byte":
            frames = [bytes([b]) for b in buffer]
            del buffer[:]
            return frames

        frames = []
        while True:
            idx = buffer.find(b"\n")
            if idx < 0:
                break
            line = bytes(buffer[:idx]).rstrip(b"\r")
            del buffer[: idx + 1]
            if line.strip():
                frames.append(line)
        return frames

    def __repr__(self) -> str:
        return (
            f"LabelCodec(framing='{self.framing}', stimuli={len(self.stimuli)}, "
            f"observations={len(self.observations)})"
        )
