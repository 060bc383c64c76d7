# protocol/core/__init__.py

from .defs import Keyword, EVENT_FIELD, QUIESCENCE_LABEL
from .command import Command
from .parser import CommandParser

__all__ = [
    "Keyword", "EVENT_FIELD", "QUIESCENCE_LABEL",
    "Command",
    "CommandParser",
]
