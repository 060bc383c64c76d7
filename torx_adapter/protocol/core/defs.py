# torx_adapter/protocol/core/defs.py
from __future__ import annotations

from enum import Enum


class Keyword(str, Enum):
    """Command keywords sent by the test tool."""
    IOKIND = "C_IOKIND"
    INPUT = "C_INPUT"
    OUTPUT = "C_OUTPUT"
    QUIT = "C_QUIT"


EVENT_FIELD = "event"
QUIESCENCE_LABEL = "delta"

# The test tool stalls if the handshake ack lacks its trailing space.
A_IOKIND = "A_IOKIND \n"
A_INPUT_ERROR = "A_INPUT_ERROR\n"
A_QUIT = "A_QUIT\n"
A_ERROR = "A_ERROR\n"


def input_ack(label: str) -> str:
    return f"A_INPUT {EVENT_FIELD}={label}\n"


def output_event(label: str) -> str:
    return f"A_OUTPUT {EVENT_FIELD}={label}\n"


def quiescence() -> str:
    return output_event(QUIESCENCE_LABEL)
